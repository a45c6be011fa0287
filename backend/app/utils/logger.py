import logging
import sys
from typing import Any, Dict, Optional

from app.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger("marketplace")

_SENSITIVE_KEYS = ("password", "hashed_password", "sid", "session", "cookie", "authorization")


def mask_email(email: Optional[str]) -> str:
    """Shorten an email for log lines: ``jane.doe@x.com`` -> ``ja***@x.com``."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}"


def sanitize(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not data:
        return {}

    sanitized = dict(data)
    for key in list(sanitized.keys()):
        if key.lower() in _SENSITIVE_KEYS:
            value = str(sanitized[key])
            if len(value) > 8:
                sanitized[key] = f"{value[:2]}...{value[-2:]}"
            else:
                sanitized[key] = "***"
    return sanitized
