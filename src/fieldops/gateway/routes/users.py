"""用户路由 -- 分配目标的最小注册表"""

from fastapi import APIRouter, Depends, Query
from fieldops.core.models import UserRole

from ..deps import get_actor_id, get_user_service
from ..schemas import UserCreateRequest, UserListResponse, UserResponse, UserView
from ..services.user_service import UserService

router = APIRouter()


@router.post("/users", status_code=201, response_model=UserResponse)
async def create_user(
    body: UserCreateRequest,
    service: UserService = Depends(get_user_service),
    actor_id: str = Depends(get_actor_id),
) -> UserResponse:
    user = await service.create_user(
        body.name,
        body.email,
        body.role,
        actor_id,
        employee_code=body.employee_code,
    )
    return UserResponse(message="User created successfully", user=UserView.from_user(user))


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: UserRole | None = Query(default=None, description="按角色筛选"),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    users = await service.list_users(role)
    return UserListResponse(users=[UserView.from_user(u) for u in users])
