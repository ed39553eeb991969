"""
Authentication endpoints for API v1.

Registration and login return a bearer token together with the actor's
profile.  Profiles are private: an actor can only read its own.
"""

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status

from food_hero_api.app.core.errors import ForbiddenError
from food_hero_api.app.core.security import create_access_token, get_current_actor
from food_hero_api.app.dependencies import get_actors, get_services
from food_hero_api.app.schemas.user import ActorContext, TokenRead, UserCreate, UserLogin, UserRead
from food_hero_api.app.services.actor_service import ActorDirectory


router = APIRouter()


def _issue_token(request: Request, user: UserRead) -> TokenRead:
    settings = get_services(request).settings
    token = create_access_token(
        {"sub": user.email},
        secret=settings.secret_key,
        expires_delta=settings.access_token_expire_minutes * 60,
    )
    return TokenRead(access_token=token, user=user)


@router.post("/register", response_model=TokenRead, status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    request: Request,
    actors: ActorDirectory = Depends(get_actors),
) -> TokenRead:
    """Register a school or a farmer and log it in."""
    user = actors.register(payload)
    return _issue_token(request, user)


@router.post("/login", response_model=TokenRead)
def login(
    payload: UserLogin,
    request: Request,
    actors: ActorDirectory = Depends(get_actors),
) -> TokenRead:
    user = actors.authenticate(payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _issue_token(request, user)


@router.get("/me", response_model=UserRead)
def read_me(
    current: ActorContext = Depends(get_current_actor),
    actors: ActorDirectory = Depends(get_actors),
) -> UserRead:
    return actors.get(current.user_id)


@router.get("/profile/{user_id}", response_model=UserRead)
def read_profile(
    user_id: int = Path(..., description="ID of the user"),
    current: ActorContext = Depends(get_current_actor),
    actors: ActorDirectory = Depends(get_actors),
) -> UserRead:
    """Return a profile, including counters and stars.  Own profile only."""
    if user_id != current.user_id:
        raise ForbiddenError("Not allowed to read another user's profile")
    return actors.get(user_id)
