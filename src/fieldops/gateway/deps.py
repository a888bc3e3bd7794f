"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例与服务

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Depends, Header, Request
from fieldops.core.store import StoreGroup

from .services.bulk_import_service import BulkImportService
from .services.task_service import TaskService
from .services.user_service import UserService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str:
    """操作者标识（X-Actor-Id 请求头），缺省为 system"""
    return (x_actor_id or "").strip() or "system"


def get_task_service(store_group: StoreGroup = Depends(get_store_group)) -> TaskService:
    return TaskService(store_group)


def get_user_service(store_group: StoreGroup = Depends(get_store_group)) -> UserService:
    return UserService(store_group)


def get_bulk_import_service(
    request: Request,
    store_group: StoreGroup = Depends(get_store_group),
) -> BulkImportService:
    return BulkImportService(store_group, getattr(request.app.state, "upload_dir", None))
