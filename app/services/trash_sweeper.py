import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Set

from sqlalchemy.orm import Session

from app.models.folder import Folder
from app.models.image import Image
from app.repositories.folder_repository import FolderRepository
from app.repositories.image_repository import ImageRepository
from app.services.object_store import destroy_quietly
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    folders: int = 0
    images: int = 0
    deferred: int = 0
    failures: int = 0


class TrashSweeper:
    """Purges trash older than the retention window.

    A trashed folder is purged together with its trashed subtree and every
    image inside it, keyed by the folder's own ``deleted_at``. Images trashed
    on their own are purged by their own age. Each unit commits separately
    and a failing unit never stops the rest of the sweep.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        object_store,
        retention_days: int = 30,
        interval_seconds: int = 86400,
    ):
        self.session_factory = session_factory
        self.object_store = object_store
        self.retention = timedelta(days=retention_days)
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def purge_expired(self, db: Session, now: Optional[datetime] = None) -> SweepResult:
        cutoff = (now or utc_now()) - self.retention
        result = SweepResult()

        expired_folders = [
            (folder_id, owner_id)
            for folder_id, owner_id in db.query(Folder.id, Folder.owner_id)
            .filter(Folder.is_deleted == True, Folder.deleted_at < cutoff)
            .order_by(Folder.owner_id.asc(), Folder.path.asc())
            .all()
        ]
        purged: Set[int] = set()
        for folder_id, owner_id in expired_folders:
            if folder_id in purged:
                continue
            try:
                purged.update(self._purge_folder(db, folder_id, owner_id, result))
            except Exception:
                db.rollback()
                result.failures += 1
                logger.exception(f"Failed to purge trashed folder {folder_id}")

        expired_images = [
            (image_id, owner_id)
            for image_id, owner_id in db.query(Image.id, Image.owner_id)
            .filter(Image.is_deleted == True, Image.deleted_at < cutoff)
            .order_by(Image.id.asc())
            .all()
        ]
        for image_id, owner_id in expired_images:
            try:
                self._purge_image(db, image_id, owner_id)
                result.images += 1
            except Exception:
                db.rollback()
                result.failures += 1
                logger.exception(f"Failed to purge trashed image {image_id}")

        logger.info(
            f"Trash sweep removed {result.folders} folders and {result.images} images "
            f"(deferred {result.deferred}, failed {result.failures})"
        )
        return result

    def _purge_folder(self, db: Session, folder_id: int, owner_id: int, result: SweepResult) -> Set[int]:
        folders = FolderRepository(db, owner_id)
        images = ImageRepository(db, owner_id)

        subtree = folders.find_subtree(folders.find_by_id(folder_id))
        if any(not folder.is_deleted for folder in subtree):
            # A restored subfolder still lives below this one.
            result.deferred += 1
            logger.warning(f"Deferring purge of folder {folder_id}: subtree has active folders")
            return set()

        folder_ids = [folder.id for folder in subtree]
        contained = images.list_in_folders(folder_ids)
        if any(not image.is_deleted for image in contained):
            result.deferred += 1
            logger.warning(f"Deferring purge of folder {folder_id}: subtree has active images")
            return set()

        for image in contained:
            destroy_quietly(self.object_store, image.public_id)

        images.delete_by_ids([image.id for image in contained])
        folders.delete_by_ids(folder_ids)
        db.commit()

        result.folders += len(folder_ids)
        result.images += len(contained)
        return set(folder_ids)

    def _purge_image(self, db: Session, image_id: int, owner_id: int) -> None:
        images = ImageRepository(db, owner_id)
        image = images.find_trashed(image_id)
        destroy_quietly(self.object_store, image.public_id)
        images.delete_by_ids([image.id])
        db.commit()

    def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        db = self.session_factory()
        try:
            return self.purge_expired(db, now)
        finally:
            db.close()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._worker())
            logger.info(
                f"Trash sweeper started (retention {self.retention.days} days, "
                f"every {self.interval_seconds}s)"
            )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Trash sweeper stopped")

    async def _worker(self) -> None:
        while True:
            try:
                await asyncio.to_thread(self.run_once)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in trash sweep: {str(e)}")
            await asyncio.sleep(self.interval_seconds)
