from __future__ import annotations

from collections import defaultdict
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.folder import Folder
from app.utils.path_utils import (
    LIKE_ESCAPE,
    PATH_SEPARATOR,
    compute_path,
    escape_like,
    is_descendant_path,
    normalize_name,
)


class FolderRepository:
    """Folder rows of a single owner.

    Every query is filtered by ``owner_id``; a folder belonging to someone
    else is indistinguishable from a missing one.
    """

    def __init__(self, db: Session, owner_id: int):
        self.db = db
        self.owner_id = owner_id

    def _query(self):
        return self.db.query(Folder).filter(Folder.owner_id == self.owner_id)

    def create(self, name: str, parent_folder_id: Optional[int] = None) -> Folder:
        name = normalize_name(name)
        parent_path = None
        if parent_folder_id is not None:
            parent = (
                self._query()
                .filter(Folder.id == parent_folder_id, Folder.is_deleted == False)
                .first()
            )
            if not parent:
                raise NotFoundError("Parent folder not found")
            parent_path = parent.path

        if self.find_active_sibling(parent_folder_id, name):
            raise ConflictError(
                "A folder with this name already exists in the same location"
            )

        folder = Folder(
            owner_id=self.owner_id,
            parent_folder_id=parent_folder_id,
            name=name,
            path=compute_path(name, parent_path),
        )
        self.db.add(folder)
        self.db.flush()
        return folder

    def list_active(self) -> List[Folder]:
        # Parents sort before their children because a path prefixes its descendants.
        return (
            self._query()
            .filter(Folder.is_deleted == False)
            .order_by(Folder.path.asc(), Folder.id.asc())
            .all()
        )

    def list_trashed(self) -> List[Folder]:
        return (
            self._query()
            .filter(Folder.is_deleted == True)
            .order_by(Folder.deleted_at.desc(), Folder.path.asc())
            .all()
        )

    def find_by_id(self, folder_id: int) -> Folder:
        folder = self._query().filter(Folder.id == folder_id).first()
        if not folder:
            raise NotFoundError("Folder not found")
        return folder

    def find_active(self, folder_id: int) -> Folder:
        folder = (
            self._query()
            .filter(Folder.id == folder_id, Folder.is_deleted == False)
            .first()
        )
        if not folder:
            raise NotFoundError("Folder not found or is in trash")
        return folder

    def find_trashed(self, folder_id: int) -> Folder:
        folder = (
            self._query()
            .filter(Folder.id == folder_id, Folder.is_deleted == True)
            .first()
        )
        if not folder:
            raise NotFoundError("Folder not found or not in trash")
        return folder

    def find_active_sibling(
        self,
        parent_folder_id: Optional[int],
        name: str,
        exclude_id: Optional[int] = None,
    ) -> Optional[Folder]:
        filters = [Folder.name == name, Folder.is_deleted == False]
        if parent_folder_id is not None:
            filters.append(Folder.parent_folder_id == parent_folder_id)
        else:
            filters.append(Folder.parent_folder_id.is_(None))
        if exclude_id is not None:
            filters.append(Folder.id != exclude_id)
        return self._query().filter(*filters).first()

    def find_subtree(self, root: Folder) -> List[Folder]:
        """``root`` followed by every folder below it, in any trash state.

        Candidates come from a prefix query on ``path``; only those linked to
        ``root`` through ``parent_folder_id`` are kept, so an unrelated
        trashed folder that once had the same path is never included.
        """
        pattern = escape_like(root.path + PATH_SEPARATOR) + "%"
        candidates = (
            self._query()
            .filter(
                or_(
                    Folder.path == root.path,
                    Folder.path.like(pattern, escape=LIKE_ESCAPE),
                )
            )
            .order_by(Folder.path.asc(), Folder.id.asc())
            .all()
        )

        children = defaultdict(list)
        for folder in candidates:
            if folder.id != root.id and is_descendant_path(folder.path, root.path):
                children[folder.parent_folder_id].append(folder)

        subtree = [root]
        pending = [root.id]
        while pending:
            for child in children.get(pending.pop(), []):
                subtree.append(child)
                pending.append(child.id)
        return subtree

    def delete_by_ids(self, folder_ids: Iterable[int]) -> int:
        folder_ids = list(folder_ids)
        if not folder_ids:
            return 0
        return (
            self._query()
            .filter(Folder.id.in_(folder_ids))
            .delete(synchronize_session=False)
        )
