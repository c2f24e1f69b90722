from typing import List, Optional
from pydantic import BaseModel

from app.schemas.folder import FolderResponse
from app.schemas.image import ImageResponse


class TrashResponse(BaseModel):
    folders: List[FolderResponse]
    images: List[ImageResponse]


class RestoreItemResponse(BaseModel):
    message: str
    folder: Optional[FolderResponse] = None
    image: Optional[ImageResponse] = None
