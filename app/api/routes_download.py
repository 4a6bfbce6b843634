import os
from fastapi import APIRouter, HTTPException, Path
from fastapi.responses import FileResponse
from app.core import config

router = APIRouter(tags=["download"])

@router.get(f"/{config.PUBLIC_PREFIX}/{{filename}}")
def download(filename: str = Path(..., description="Name returned by /upload, without the uploads/ prefix")):
    if os.path.basename(filename) != filename or filename.startswith("."):
        raise HTTPException(status_code=404, detail="File not found")
    path = os.path.join(config.UPLOAD_DIR, filename)
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path, filename=filename)
