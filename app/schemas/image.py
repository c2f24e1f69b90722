from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class RenameImageRequest(BaseModel):
    new_name: str = Field(..., description="The new display name of the image")


class ImageResponse(BaseModel):
    id: int = Field(..., description="Unique identifier of the image")
    owner_id: int = Field(..., description="ID of the user who owns the image")
    folder_id: int = Field(..., description="ID of the folder containing the image")
    name: str = Field(..., description="Display name")
    original_name: str = Field(..., description="File name at upload time")
    url: str = Field(..., description="Public URL of the stored payload")
    public_id: Optional[str] = Field(None, description="Object key in the storage bucket")
    size: int = Field(..., description="Payload size in bytes")
    mime_type: str = Field(..., description="Payload content type")
    is_deleted: bool = Field(..., description="Whether the image is in trash")
    deleted_at: Optional[datetime] = Field(None, description="When the image was moved to trash")
    created_at: Optional[datetime] = Field(None, description="Timestamp when the image was uploaded")
    updated_at: Optional[datetime] = Field(None, description="Timestamp when the image was last updated")
    model_config = {"from_attributes": True}


class ImageResult(BaseModel):
    message: str
    image: ImageResponse
