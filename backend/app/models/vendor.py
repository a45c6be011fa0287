from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.common import CamelModel
from app.models.enums import VendorVerificationStatus


class VendorProfile(CamelModel):
    id: int
    user_id: int
    company_name: str
    business_number: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    verification_status: VendorVerificationStatus = VendorVerificationStatus.PENDING
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class VendorApplicationRequest(CamelModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    business_number: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class VendorReviewRequest(CamelModel):
    # Kept as plain str so unknown values surface as INVALID_STATUS rather
    # than a schema error.
    verification_status: str
    rejection_reason: Optional[str] = None
