import logging
import os
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.exceptions import InvalidInputError
from app.models.image import Image
from app.repositories.folder_repository import FolderRepository
from app.repositories.image_repository import ImageRepository
from app.services.object_store import destroy_quietly
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def display_name(filename: str) -> str:
    name = os.path.splitext(filename)[0].strip()
    return name or filename


class ImageService:
    def __init__(self, db: Session, owner_id: int, object_store=None):
        self.db = db
        self.owner_id = owner_id
        self.object_store = object_store
        self.folders = FolderRepository(db, owner_id)
        self.images = ImageRepository(db, owner_id)

    def upload_image(
        self, folder_id: int, filename: Optional[str], data: bytes, content_type: Optional[str]
    ) -> Image:
        """Store the payload, then record it in ``folder_id``.

        If the row cannot be written the payload is removed again.
        """
        folder = self.folders.find_active(folder_id)
        if not filename or not data:
            raise InvalidInputError('No file uploaded. Use key "image".')
        if not content_type or not content_type.startswith("image/"):
            raise InvalidInputError("Only image uploads are supported")

        stored = self.object_store.store(
            data, filename, content_type, prefix=str(self.owner_id)
        )
        try:
            with transaction(self.db):
                image = self.images.create(
                    folder,
                    name=display_name(filename),
                    original_name=filename,
                    url=stored.url,
                    public_id=stored.public_id,
                    size=len(data),
                    mime_type=content_type,
                )
        except Exception:
            destroy_quietly(self.object_store, stored.public_id)
            raise

        self.db.refresh(image)
        logger.info(f"User {self.owner_id} uploaded image {image.id} into folder {folder_id}")
        return image

    def list_images(self, folder_id: int) -> List[Image]:
        self.folders.find_active(folder_id)
        return self.images.list_active_in_folder(folder_id)

    def search_images(self, folder_id: int, query: Optional[str]) -> List[Image]:
        self.folders.find_active(folder_id)
        query = query.strip() if query else ""
        return self.images.list_active_in_folder(folder_id, search=query or None)

    def rename_image(self, image_id: int, new_name: str) -> Image:
        if not isinstance(new_name, str) or not new_name.strip():
            raise InvalidInputError("New image name is required")
        with transaction(self.db):
            image = self.images.find_active(image_id)
            image.name = new_name.strip()
        self.db.refresh(image)
        return image

    def soft_delete_image(self, image_id: int, now: Optional[datetime] = None) -> Image:
        now = now or utc_now()
        with transaction(self.db):
            image = self.images.find_active(image_id)
            image.mark_deleted(now)
        logger.info(f"Moved image {image_id} to trash")
        return image
