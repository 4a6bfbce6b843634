from starlette.requests import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from app.core import config

class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        cl = request.headers.get("content-length")
        if cl is not None:
            try:
                size = int(cl)
            except ValueError:
                return JSONResponse({"detail": "Bad Content-Length"}, status_code=400)
            if size > config.MAX_UPLOAD_BYTES:
                return JSONResponse({"detail": "File too large"}, status_code=413)
        return await call_next(request)
