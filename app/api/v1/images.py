from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.image import ImageResponse, ImageResult, RenameImageRequest
from app.services.image_service import ImageService
from app.services.object_store import get_object_store

router = APIRouter()


def get_image_service(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    object_store=Depends(get_object_store),
) -> ImageService:
    return ImageService(db, current_user.id, object_store)


@router.post(
    "/folder/{folder_id}", response_model=ImageResult, status_code=status.HTTP_201_CREATED
)
async def upload_image(
    folder_id: int,
    image: UploadFile = File(...),
    service: ImageService = Depends(get_image_service),
):
    data = await image.read()
    uploaded = service.upload_image(folder_id, image.filename, data, image.content_type)
    return {"message": "Image uploaded successfully", "image": uploaded}


@router.get("/folder/{folder_id}/search", response_model=List[ImageResponse])
def search_images(
    folder_id: int,
    q: Optional[str] = Query(None, description="Part of the image name, case-insensitive"),
    service: ImageService = Depends(get_image_service),
):
    return service.search_images(folder_id, q)


@router.get("/folder/{folder_id}", response_model=List[ImageResponse])
def list_images(
    folder_id: int,
    service: ImageService = Depends(get_image_service),
):
    return service.list_images(folder_id)


@router.put("/{image_id}", response_model=ImageResult)
def rename_image(
    image_id: int,
    body: RenameImageRequest,
    service: ImageService = Depends(get_image_service),
):
    image = service.rename_image(image_id, body.new_name)
    return {"message": "Image renamed successfully", "image": image}


@router.delete("/{image_id}", response_model=MessageResponse)
def delete_image(
    image_id: int,
    service: ImageService = Depends(get_image_service),
):
    service.soft_delete_image(image_id)
    return {"message": "Image moved to trash"}
