from fastapi import APIRouter, Depends, Query, Request
from starlette.concurrency import run_in_threadpool

from app.core import config
from app.models.upload import UploadResponse
from app.services.uploader import Uploader
from app.utils.hashing import DigestIndex

router = APIRouter(tags=["upload"])

# One Uploader per (directory, index mode) so requests share its lock and index
_uploaders: dict[tuple[str, bool], Uploader] = {}


def get_uploader() -> Uploader:
    # Read config on each call so tests and operators can repoint the directory
    key = (config.UPLOAD_DIR, config.UPLOAD_USE_INDEX)
    uploader = _uploaders.get(key)
    if uploader is None:
        index = DigestIndex(config.UPLOAD_DIR) if config.UPLOAD_USE_INDEX else None
        uploader = _uploaders.setdefault(key, Uploader(config.UPLOAD_DIR, index=index))
    return uploader


@router.post("/upload", response_model=UploadResponse)
async def upload(
    request: Request,
    field: str = Query("file", description="Form field holding the file"),
    uploader: Uploader = Depends(get_uploader),
):
    form = await request.form()
    try:
        result = await run_in_threadpool(uploader.upload_with_status, field, form)
    finally:
        await form.close()
    if result is None:
        return UploadResponse(field=field)
    stored_path, duplicate = result
    return UploadResponse(field=field, stored_path=stored_path, duplicate=duplicate)
