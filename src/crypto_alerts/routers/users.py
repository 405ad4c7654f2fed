"""Contact-address registration (no authentication)."""
from fastapi import APIRouter, status

from crypto_alerts.deps import CurrentUser, UsersServiceDep
from crypto_alerts.schemas import UserCreate, UserRead

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, users: UsersServiceDep) -> UserRead:
    """Register an alert recipient. Use the returned id as X-User-Id."""
    return UserRead.model_validate(await users.register(body.email))


@router.get("/me", response_model=UserRead)
async def me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(user: CurrentUser, users: UsersServiceDep) -> None:
    """Delete the caller along with their alerts and positions."""
    await users.delete(user.id)
