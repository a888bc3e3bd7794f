"""TraceMiddleware

为 /tasks/{task_id}/... 请求绑定 task_id，贯穿该任务相关的请求日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

ULID_LENGTH = 26


def extract_task_id(path: str) -> str | None:
    """从 /tasks/{task_id} 形式的路径中提取 task_id"""
    parts = path.split("/")
    for i, part in enumerate(parts):
        if part == "tasks" and i + 1 < len(parts):
            candidate = parts[i + 1]
            # 排除 /tasks/unassigned、/tasks/bulk-upload 等子路由
            if len(candidate) == ULID_LENGTH and candidate.isalnum():
                return candidate
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为任务操作绑定 task_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(task_id=task_id)

        return await call_next(request)
