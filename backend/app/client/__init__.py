from app.client.api import ApiError, MarketplaceClient
from app.client.cart import CartStore
from app.client.favorites import FavoritesStore
from app.client.language import LanguageStore
from app.client.local_store import LocalStore

__all__ = [
    "ApiError",
    "CartStore",
    "FavoritesStore",
    "LanguageStore",
    "LocalStore",
    "MarketplaceClient",
]
