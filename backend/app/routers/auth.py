from fastapi import APIRouter, Depends, Request, Response, status

from app.models.common import envelope
from app.models.user import LoginRequest, RegisterRequest, User, UserUpdateRequest, public_user
from app.services.auth import (
    authenticate_user,
    end_session,
    get_current_user,
    register_user,
    start_session,
)
from app.services.database import get_storage
from app.services.storage import MarketplaceStorage
from app.utils.logger import logger, mask_email, sanitize

router = APIRouter(prefix="/api", tags=["authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    storage: MarketplaceStorage = Depends(get_storage),
):
    rid = getattr(request.state, "rid", "unknown")
    logger.info(f"Registration attempt {sanitize(payload.model_dump(exclude={'email'}))} email={mask_email(payload.email)} rid={rid}")
    user = register_user(storage, payload)
    start_session(storage, response, user)
    return envelope(public_user(user))


@router.post("/login")
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    storage: MarketplaceStorage = Depends(get_storage),
):
    rid = getattr(request.state, "rid", "unknown")
    logger.info(f"Login attempt email={mask_email(payload.email)} rid={rid}")
    user = authenticate_user(storage, payload.email, payload.password)
    start_session(storage, response, user)
    logger.info(f"User logged in successfully: id={user.id} role={user.role.value} rid={rid}")
    return envelope(public_user(user))


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    storage: MarketplaceStorage = Depends(get_storage),
):
    end_session(storage, request, response)
    return envelope({"message": "Logged out successfully"})


@router.get("/user")
async def get_me(current_user: User = Depends(get_current_user)):
    return envelope(public_user(current_user))


@router.patch("/user")
async def update_me(
    payload: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    storage: MarketplaceStorage = Depends(get_storage),
):
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        return envelope(public_user(current_user))
    user = storage.update_user(current_user.id, updates)
    logger.info(f"User {current_user.id} updated profile fields: {sorted(updates)}")
    return envelope(public_user(user))
