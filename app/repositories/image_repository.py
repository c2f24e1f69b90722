from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.folder import Folder
from app.models.image import Image
from app.utils.path_utils import LIKE_ESCAPE, escape_like


class ImageRepository:
    """Image metadata rows of a single owner."""

    def __init__(self, db: Session, owner_id: int):
        self.db = db
        self.owner_id = owner_id

    def _query(self):
        return self.db.query(Image).filter(Image.owner_id == self.owner_id)

    def create(
        self,
        folder: Folder,
        *,
        name: str,
        original_name: str,
        url: str,
        public_id: Optional[str],
        size: int,
        mime_type: str,
    ) -> Image:
        image = Image(
            owner_id=self.owner_id,
            folder_id=folder.id,
            name=name,
            original_name=original_name,
            url=url,
            public_id=public_id,
            size=size,
            mime_type=mime_type,
        )
        self.db.add(image)
        self.db.flush()
        return image

    def find_by_id(self, image_id: int) -> Image:
        image = self._query().filter(Image.id == image_id).first()
        if not image:
            raise NotFoundError("Image not found")
        return image

    def find_active(self, image_id: int) -> Image:
        image = (
            self._query()
            .filter(Image.id == image_id, Image.is_deleted == False)
            .first()
        )
        if not image:
            raise NotFoundError("Image not found or is in trash")
        return image

    def find_trashed(self, image_id: int) -> Image:
        image = (
            self._query()
            .filter(Image.id == image_id, Image.is_deleted == True)
            .first()
        )
        if not image:
            raise NotFoundError("Image not found or not in trash")
        return image

    def list_active_in_folder(
        self, folder_id: int, search: Optional[str] = None
    ) -> List[Image]:
        query = self._query().filter(
            Image.folder_id == folder_id, Image.is_deleted == False
        )
        if search:
            pattern = f"%{escape_like(search)}%"
            query = query.filter(
                or_(
                    Image.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Image.original_name.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        return query.order_by(Image.created_at.asc(), Image.id.asc()).all()

    def list_in_folders(self, folder_ids: Iterable[int]) -> List[Image]:
        folder_ids = list(folder_ids)
        if not folder_ids:
            return []
        return (
            self._query()
            .filter(Image.folder_id.in_(folder_ids))
            .order_by(Image.id.asc())
            .all()
        )

    def list_trashed(self) -> List[Image]:
        return (
            self._query()
            .filter(Image.is_deleted == True)
            .order_by(Image.deleted_at.desc(), Image.id.asc())
            .all()
        )

    def trash_in_folders(self, folder_ids: Iterable[int], now: datetime) -> int:
        folder_ids = list(folder_ids)
        if not folder_ids:
            return 0
        return (
            self._query()
            .filter(Image.folder_id.in_(folder_ids))
            .update(
                {Image.is_deleted: True, Image.deleted_at: now},
                synchronize_session=False,
            )
        )

    def restore_in_folder(self, folder_id: int) -> int:
        return (
            self._query()
            .filter(Image.folder_id == folder_id, Image.is_deleted == True)
            .update(
                {Image.is_deleted: False, Image.deleted_at: None},
                synchronize_session=False,
            )
        )

    def delete_by_ids(self, image_ids: Iterable[int]) -> int:
        image_ids = list(image_ids)
        if not image_ids:
            return 0
        return (
            self._query()
            .filter(Image.id.in_(image_ids))
            .delete(synchronize_session=False)
        )
