import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.database import transaction
from app.core.exceptions import ConflictError
from app.models.folder import Folder
from app.repositories.folder_repository import FolderRepository
from app.repositories.image_repository import ImageRepository
from app.services.object_store import destroy_quietly
from app.utils.datetime_utils import utc_now
from app.utils.path_utils import compute_path, normalize_name, replace_path_prefix

logger = logging.getLogger(__name__)


class FolderService:
    """Folder operations for one owner, including the subtree cascades.

    Each public method runs in a single transaction. Object store deletes
    are best effort: a payload that cannot be removed is logged and the
    metadata is purged anyway.
    """

    def __init__(self, db: Session, owner_id: int, object_store=None):
        self.db = db
        self.owner_id = owner_id
        self.object_store = object_store
        self.folders = FolderRepository(db, owner_id)
        self.images = ImageRepository(db, owner_id)

    def create_folder(self, name: str, parent_folder_id: Optional[int] = None) -> Folder:
        with transaction(self.db):
            folder = self.folders.create(name, parent_folder_id)
        self.db.refresh(folder)
        logger.info(f"User {self.owner_id} created folder {folder.id} at {folder.path!r}")
        return folder

    def list_folders(self) -> List[Folder]:
        return self.folders.list_active()

    def rename_folder(self, folder_id: int, new_name: str) -> Folder:
        new_name = normalize_name(new_name)
        with transaction(self.db):
            folder = self.folders.find_active(folder_id)
            if self.folders.find_active_sibling(
                folder.parent_folder_id, new_name, exclude_id=folder.id
            ):
                raise ConflictError(
                    "A folder with this name already exists in the same location"
                )

            # Resolve the subtree while every row still carries the old prefix.
            descendants = self.folders.find_subtree(folder)[1:]
            old_path = folder.path

            parent_path = None
            if folder.parent_folder_id is not None:
                parent_path = self.folders.find_by_id(folder.parent_folder_id).path
            new_path = compute_path(new_name, parent_path)

            folder.name = new_name
            folder.path = new_path
            for descendant in descendants:
                descendant.path = replace_path_prefix(descendant.path, old_path, new_path)

        self.db.refresh(folder)
        logger.info(
            f"Renamed folder {folder.id}: {old_path!r} -> {new_path!r} "
            f"({len(descendants)} descendants updated)"
        )
        return folder

    def soft_delete_folder(self, folder_id: int, now: Optional[datetime] = None) -> Folder:
        now = now or utc_now()
        with transaction(self.db):
            folder = self.folders.find_by_id(folder_id)
            if folder.is_deleted:
                logger.info(f"Folder {folder_id} is already in trash")
                return folder

            subtree = self.folders.find_subtree(folder)
            for item in subtree:
                item.mark_deleted(now)
            image_count = self.images.trash_in_folders([f.id for f in subtree], now)

        logger.info(
            f"Moved folder {folder_id} to trash with {len(subtree)} folders "
            f"and {image_count} images"
        )
        return folder

    def hard_delete_folder(self, folder_id: int) -> int:
        """Permanently remove a folder, its subtree and their images.

        Works on active and trashed folders alike. Returns the number of
        folders removed.
        """
        folder = self.folders.find_by_id(folder_id)
        return self.purge_subtree(folder)

    def purge_subtree(self, folder: Folder) -> int:
        subtree = self.folders.find_subtree(folder)
        folder_ids = [f.id for f in subtree]
        images = self.images.list_in_folders(folder_ids)

        destroyed = 0
        for image in images:
            if image.public_id and destroy_quietly(self.object_store, image.public_id):
                destroyed += 1

        with transaction(self.db):
            self.images.delete_by_ids([image.id for image in images])
            self.folders.delete_by_ids(folder_ids)

        logger.info(
            f"Purged {len(folder_ids)} folders and {len(images)} images "
            f"({destroyed} payloads destroyed)"
        )
        return len(folder_ids)

    def restore_folder(self, folder_id: int) -> Folder:
        """Take a folder and its direct images out of trash.

        Subfolders stay in trash and are restored one by one.
        """
        with transaction(self.db):
            folder = self.folders.find_trashed(folder_id)
            if self.folders.find_active_sibling(
                folder.parent_folder_id, folder.name, exclude_id=folder.id
            ):
                raise ConflictError(
                    "A folder with this name already exists in the same location"
                )
            folder.mark_restored()
            image_count = self.images.restore_in_folder(folder.id)

        self.db.refresh(folder)
        logger.info(f"Restored folder {folder_id} and {image_count} images")
        return folder
