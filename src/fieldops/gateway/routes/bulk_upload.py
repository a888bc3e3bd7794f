"""批量导入路由

POST /tasks/bulk-upload: multipart 字段 file，仅接受 .xlsx / .xls。
导入的任务全部进入未分配池；单行失败不影响其他行。
"""

from fastapi import APIRouter, Depends, File, UploadFile

from ..deps import get_actor_id, get_bulk_import_service
from ..schemas import BulkUploadResponse
from ..services.bulk_import_service import BulkImportService

router = APIRouter()


@router.post("/tasks/bulk-upload", response_model=BulkUploadResponse)
async def bulk_upload(
    file: UploadFile = File(...),
    service: BulkImportService = Depends(get_bulk_import_service),
    actor_id: str = Depends(get_actor_id),
) -> BulkUploadResponse:
    report = await service.import_upload(file, actor_id)
    return BulkUploadResponse.from_report(report)
