from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CreateFolderRequest(BaseModel):
    name: str = Field(..., description="The name of the folder")
    parent_folder_id: Optional[int] = Field(None, description="The parent folder id, empty for a root folder")


class RenameFolderRequest(BaseModel):
    new_name: str = Field(..., description="The new name of the folder")


class FolderResponse(BaseModel):
    id: int = Field(..., description="The id of the folder")
    owner_id: int = Field(..., description="The user id who owns the folder")
    parent_folder_id: Optional[int] = Field(None, description="The parent folder id")
    name: str = Field(..., description="The name of the folder")
    path: str = Field(..., description="Slash-joined names from the root folder down to this one")
    is_deleted: bool = Field(..., description="Whether the folder is in trash")
    deleted_at: Optional[datetime] = Field(None, description="When the folder was moved to trash")
    created_at: Optional[datetime] = Field(None, description="The creation time of the folder")
    updated_at: Optional[datetime] = Field(None, description="The update time of the folder")
    model_config = {"from_attributes": True}


class FolderResult(BaseModel):
    message: str
    folder: FolderResponse
