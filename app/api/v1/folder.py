from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.folder import (
    CreateFolderRequest,
    FolderResponse,
    FolderResult,
    RenameFolderRequest,
)
from app.services.folder_service import FolderService
from app.services.object_store import get_object_store

router = APIRouter()


def get_folder_service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    object_store=Depends(get_object_store),
) -> FolderService:
    return FolderService(db, current_user.id, object_store)


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
def create_folder(
    body: CreateFolderRequest,
    service: FolderService = Depends(get_folder_service),
):
    return service.create_folder(body.name, body.parent_folder_id)


# Active folders only, parents before children
@router.get("", response_model=List[FolderResponse])
def list_folders(service: FolderService = Depends(get_folder_service)):
    return service.list_folders()


@router.put("/{folder_id}", response_model=FolderResult)
def rename_folder(
    folder_id: int,
    body: RenameFolderRequest,
    service: FolderService = Depends(get_folder_service),
):
    folder = service.rename_folder(folder_id, body.new_name)
    return {"message": "Folder renamed successfully", "folder": folder}


# Soft delete: folder, subfolders and their images go to trash
@router.delete("/{folder_id}", response_model=MessageResponse)
def delete_folder(
    folder_id: int,
    service: FolderService = Depends(get_folder_service),
):
    service.soft_delete_folder(folder_id)
    return {"message": "Folder and contents moved to trash"}


@router.delete("/{folder_id}/permanent", response_model=MessageResponse)
def hard_delete_folder(
    folder_id: int,
    service: FolderService = Depends(get_folder_service),
):
    service.hard_delete_folder(folder_id)
    return {"message": "Folder, subfolders, and all images deleted successfully"}


@router.post("/{folder_id}/restore", response_model=FolderResult)
def restore_folder(
    folder_id: int,
    service: FolderService = Depends(get_folder_service),
):
    folder = service.restore_folder(folder_id)
    return {"message": "Folder restored successfully", "folder": folder}
