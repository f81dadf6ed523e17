from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Response

from inkpost.adapters.clock import SystemClock
from inkpost.adapters.sqlite.repos import SQLiteUserRepo
from inkpost.api.auth_utils import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token
from inkpost.api.deps import get_clock, get_current_user, get_user_repo
from inkpost.api.schemas import SessionRequest, SessionResponse, SuccessResponse, UserResponse
from inkpost.domain.entities import User
from inkpost.domain.slugs import generate_username

router = APIRouter()


def _user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user.model_dump())


@router.post("/session", response_model=SessionResponse)
def create_session(
    req: SessionRequest,
    response: Response,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    clock: SystemClock = Depends(get_clock),
) -> SessionResponse:
    """
    Provider callback boundary: upsert the user and issue a session.

    New users get a generated unique username.
    """
    email = req.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")

    now = clock.now_utc()
    user = user_repo.get_by_email(email)
    if user is None:
        user = User(
            email=email,
            name=req.name.strip() or email.split("@", 1)[0],
            username=generate_username(email, user_repo.username_exists),
            image=req.image,
            created_at=now,
            updated_at=now,
        )
    else:
        user = user.model_copy(
            update={
                "name": req.name.strip() or user.name,
                "image": req.image or user.image,
                "updated_at": now,
            }
        )
        if not user.username:
            user.username = generate_username(email, user_repo.username_exists)
    user_repo.save(user)

    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        now_utc=now,
    )
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        expires=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=False,  # Set to True for HTTPS prod
    )
    return SessionResponse(user=_user_response(user), access_token=access_token)


@router.post("/logout", response_model=SuccessResponse)
def logout(response: Response) -> SuccessResponse:
    """Log out user by clearing cookie."""
    response.delete_cookie(key="access_token")
    return SuccessResponse()


@router.get("/me", response_model=UserResponse)
def read_users_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return _user_response(current_user)
