from scholarchain.models.models import (
    User, Wallet, UserWallet, Author,
    Publication, PublicationAuthor, Citation,
    PublicationStatus, MAX_ROYALTY_BPS, utc_now
)

__all__ = [
    "User", "Wallet", "UserWallet", "Author",
    "Publication", "PublicationAuthor", "Citation",
    "PublicationStatus", "MAX_ROYALTY_BPS", "utc_now"
]
