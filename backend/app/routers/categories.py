from fastapi import APIRouter, Depends

from app.errors import NotFound
from app.models.common import envelope
from app.services.database import get_storage
from app.services.storage import MarketplaceStorage

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(storage: MarketplaceStorage = Depends(get_storage)):
    return envelope(storage.get_all_categories())


@router.get("/{slug}")
async def get_category(slug: str, storage: MarketplaceStorage = Depends(get_storage)):
    category = storage.get_category_by_slug(slug)
    if category is None:
        raise NotFound("Category not found")
    return envelope(category)
