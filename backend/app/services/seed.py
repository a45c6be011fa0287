from app.config import Settings, settings
from app.models.enums import UserRole, UserStatus
from app.services.auth import get_password_hash
from app.services.storage import MarketplaceStorage
from app.utils.logger import logger, mask_email

_IMAGE = "https://images.unsplash.com/{}?ixlib=rb-4.0.3&auto=format&fit=crop&w=400&h=300&q=80"

DEFAULT_CATEGORIES = [
    {"name_en": "Accounting Services", "name_zh": "会计服务", "slug": "accounting-services",
     "image": _IMAGE.format("photo-1454165804606-c3d57bc86b40")},
    {"name_en": "Consulting Services", "name_zh": "咨询服务", "slug": "consulting-services",
     "image": _IMAGE.format("photo-1542744173-8e7e53415bb0")},
    {"name_en": "Tax Services", "name_zh": "税务服务", "slug": "tax-services",
     "image": _IMAGE.format("photo-1554224155-6726b3ff858f")},
    {"name_en": "Business Services", "name_zh": "商业服务", "slug": "business-services",
     "image": _IMAGE.format("photo-1460925895917-afdab827c52f")},
    {"name_en": "Tech Services", "name_zh": "技术服务", "slug": "tech-services",
     "image": _IMAGE.format("photo-1550751827-4bd374c3f58b")},
]


def seed_demo_data(storage: MarketplaceStorage, config: Settings = settings) -> None:
    """Create the admin account and default categories if they are missing.

    Safe to run on every startup.
    """
    if storage.get_user_by_email(config.ADMIN_EMAIL) is None:
        storage.create_user({
            "email": config.ADMIN_EMAIL.lower(),
            "password": get_password_hash(config.ADMIN_PASSWORD),
            "first_name": "Admin",
            "last_name": "User",
            "role": UserRole.ADMIN,
            "status": UserStatus.ACTIVE,
        })
        logger.info(f"Seeded admin user {mask_email(config.ADMIN_EMAIL)}")

    created = 0
    for category in DEFAULT_CATEGORIES:
        if storage.get_category_by_slug(category["slug"]) is None:
            storage.create_category(category)
            created += 1
    if created:
        logger.info(f"Seeded {created} categories")
