from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.trash import RestoreItemResponse, TrashResponse
from app.services.object_store import get_object_store
from app.services.trash_service import FOLDER, TrashService, parse_item_type

router = APIRouter()


def get_trash_service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    object_store=Depends(get_object_store),
) -> TrashService:
    return TrashService(db, current_user.id, object_store)


@router.get("", response_model=TrashResponse)
def list_trash(service: TrashService = Depends(get_trash_service)):
    folders, images = service.list_trash()
    return {"folders": folders, "images": images}


@router.post(
    "/restore/{item_type}/{item_id}",
    response_model=RestoreItemResponse,
    response_model_exclude_none=True,
)
def restore_item(
    item_type: str,
    item_id: int,
    service: TrashService = Depends(get_trash_service),
):
    item_type = parse_item_type(item_type)
    restored = service.restore_item(item_type, item_id)
    return {
        "message": f"{item_type} restored successfully",
        "folder" if item_type == FOLDER else "image": restored,
    }


@router.delete("/permanent/{item_type}/{item_id}", response_model=MessageResponse)
def permanent_delete(
    item_type: str,
    item_id: int,
    service: TrashService = Depends(get_trash_service),
):
    item_type = parse_item_type(item_type)
    service.permanent_delete(item_type, item_id)
    return {"message": f"{item_type} permanently deleted"}
