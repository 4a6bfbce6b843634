from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.api.routes_upload import router as upload_router
from app.api.routes_download import router as download_router
from app.middleware.limits import BodySizeLimitMiddleware
from app.services.uploader import MoveError, UnsupportedType

app = FastAPI(title="ImageUploader")

app.add_middleware(BodySizeLimitMiddleware)

@app.exception_handler(UnsupportedType)
async def unsupported_type_handler(request: Request, exc: UnsupportedType):
    return JSONResponse(status_code=415, content={"detail": str(exc)})

@app.exception_handler(MoveError)
async def move_error_handler(request: Request, exc: MoveError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})

@app.get("/health")
def health():
    return {"status": "ok"}

app.include_router(upload_router)
app.include_router(download_router)
