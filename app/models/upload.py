from pydantic import BaseModel, Field
from typing import Optional


class UploadResponse(BaseModel):
    field: str
    stored_path: Optional[str] = Field(
        default=None, description="uploads/<filename>, or null when no file was sent"
    )
    duplicate: bool = False
