import logging
from typing import List, Tuple, Union

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.exceptions import InvalidInputError
from app.models.folder import Folder
from app.models.image import Image
from app.services.folder_service import FolderService
from app.services.object_store import destroy_quietly

logger = logging.getLogger(__name__)

FOLDER = "folder"
IMAGE = "image"


def parse_item_type(item_type: str) -> str:
    item_type = (item_type or "").strip().lower()
    if item_type not in (FOLDER, IMAGE):
        raise InvalidInputError("Invalid type parameter")
    return item_type


class TrashService:
    """Trash listing plus restore and permanent delete per item type."""

    def __init__(self, db: Session, owner_id: int, object_store=None):
        self.db = db
        self.owner_id = owner_id
        self.object_store = object_store
        self.folder_service = FolderService(db, owner_id, object_store)
        self.folders = self.folder_service.folders
        self.images = self.folder_service.images

    def list_trash(self) -> Tuple[List[Folder], List[Image]]:
        return self.folders.list_trashed(), self.images.list_trashed()

    def restore_item(self, item_type: str, item_id: int) -> Union[Folder, Image]:
        if parse_item_type(item_type) == FOLDER:
            return self.folder_service.restore_folder(item_id)
        return self.restore_image(item_id)

    def permanent_delete(self, item_type: str, item_id: int) -> None:
        if parse_item_type(item_type) == FOLDER:
            folder = self.folders.find_trashed(item_id)
            self.folder_service.purge_subtree(folder)
        else:
            self.permanent_delete_image(item_id)

    def restore_image(self, image_id: int) -> Image:
        with transaction(self.db):
            image = self.images.find_trashed(image_id)
            image.mark_restored()
        self.db.refresh(image)
        logger.info(f"Restored image {image_id}")
        return image

    def permanent_delete_image(self, image_id: int) -> None:
        image = self.images.find_trashed(image_id)
        destroy_quietly(self.object_store, image.public_id)
        with transaction(self.db):
            self.images.delete_by_ids([image.id])
        logger.info(f"Permanently deleted image {image_id}")
