from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.models.folder import Folder
from app.models.image import Image
from app.services.folder_service import FolderService
from app.utils.datetime_utils import as_utc
from app.utils.path_utils import compute_path

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def service(db_session, owner, object_store):
    return FolderService(db_session, owner.id, object_store)


@pytest.fixture
def add_image(db_session, owner):
    def _add(folder, name="photo", public_id="pid"):
        image = Image(
            owner_id=owner.id,
            folder_id=folder.id,
            name=name,
            original_name=f"{name}.png",
            url=f"https://cdn.test/{public_id}",
            public_id=public_id,
            size=10,
            mime_type="image/png",
        )
        db_session.add(image)
        db_session.commit()
        return image

    return _add


def assert_paths_consistent(db_session):
    folders = {f.id: f for f in db_session.query(Folder).all()}
    for folder in folders.values():
        parent = folders.get(folder.parent_folder_id)
        assert folder.path == compute_path(folder.name, parent.path if parent else None)


class TestRename:
    def test_rename_root_updates_child_paths(self, service, db_session):
        a = service.create_folder("A")
        docs = service.create_folder("Docs", a.id)

        service.rename_folder(a.id, "B")

        assert db_session.get(Folder, a.id).path == "B"
        assert db_session.get(Folder, docs.id).path == "B/Docs"

    def test_rename_updates_every_level(self, service, db_session):
        a = service.create_folder("A")
        b = service.create_folder("B", a.id)
        c = service.create_folder("C", b.id)
        d = service.create_folder("D", c.id)

        service.rename_folder(b.id, "Renamed")

        assert db_session.get(Folder, b.id).path == "A/Renamed"
        assert db_session.get(Folder, c.id).path == "A/Renamed/C"
        assert db_session.get(Folder, d.id).path == "A/Renamed/C/D"
        assert_paths_consistent(db_session)

    def test_rename_leaves_prefix_sharing_sibling_alone(self, service, db_session):
        projects = service.create_folder("Projects")
        service.create_folder("Q1", projects.id)
        projects2 = service.create_folder("Projects2")
        inner = service.create_folder("Inner", projects2.id)

        service.rename_folder(projects.id, "Archive")

        assert db_session.get(Folder, projects2.id).path == "Projects2"
        assert db_session.get(Folder, inner.id).path == "Projects2/Inner"

    def test_descendant_named_like_an_ancestor_is_not_corrupted(self, service, db_session):
        a = service.create_folder("A")
        x = service.create_folder("x", a.id)
        inner_a = service.create_folder("A", x.id)
        y = service.create_folder("y", inner_a.id)

        service.rename_folder(a.id, "B")

        assert db_session.get(Folder, inner_a.id).path == "B/x/A"
        assert db_session.get(Folder, y.id).path == "B/x/A/y"
        assert_paths_consistent(db_session)

    def test_rename_to_existing_sibling_name_conflicts(self, service):
        service.create_folder("A")
        b = service.create_folder("B")

        with pytest.raises(ConflictError):
            service.rename_folder(b.id, "A")

    def test_rename_to_own_name_is_allowed(self, service):
        a = service.create_folder("A")
        assert service.rename_folder(a.id, "A").path == "A"

    def test_rename_trashed_folder_is_not_found(self, service):
        a = service.create_folder("A")
        service.soft_delete_folder(a.id, now=NOW)

        with pytest.raises(NotFoundError):
            service.rename_folder(a.id, "B")

    def test_rename_to_blank_name_is_invalid(self, service):
        a = service.create_folder("A")
        with pytest.raises(InvalidInputError):
            service.rename_folder(a.id, "  ")

    def test_rename_folder_of_another_owner_is_not_found(self, db_session, service, other_owner):
        foreign = FolderService(db_session, other_owner.id).create_folder("Theirs")
        with pytest.raises(NotFoundError):
            service.rename_folder(foreign.id, "Mine")


class TestSoftDelete:
    def test_marks_subtree_and_images(self, service, db_session, add_image):
        a = service.create_folder("A")
        b = service.create_folder("B", a.id)
        other = service.create_folder("Other")
        img_a = add_image(a, "a")
        img_b = add_image(b, "b")
        img_other = add_image(other, "o")

        service.soft_delete_folder(a.id, now=NOW)

        for folder_id in (a.id, b.id):
            folder = db_session.get(Folder, folder_id)
            assert folder.is_deleted is True
            assert as_utc(folder.deleted_at) == NOW
        for image_id in (img_a.id, img_b.id):
            image = db_session.get(Image, image_id)
            assert image.is_deleted is True
            assert as_utc(image.deleted_at) == NOW
        assert db_session.get(Folder, other.id).is_deleted is False
        assert db_session.get(Image, img_other.id).is_deleted is False

    def test_is_idempotent(self, service, db_session):
        a = service.create_folder("A")
        service.soft_delete_folder(a.id, now=NOW)

        service.soft_delete_folder(a.id, now=NOW + timedelta(days=3))

        folder = db_session.get(Folder, a.id)
        assert folder.is_deleted is True
        assert as_utc(folder.deleted_at) == NOW

    def test_missing_folder_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.soft_delete_folder(12345, now=NOW)

    def test_trashed_folder_frees_its_name(self, service):
        a = service.create_folder("A")
        service.soft_delete_folder(a.id, now=NOW)

        assert service.create_folder("A").id != a.id


class TestHardDelete:
    def test_removes_subtree_and_destroys_each_payload_once(
        self, service, db_session, add_image, object_store
    ):
        a = service.create_folder("A")
        b = service.create_folder("B", a.id)
        keep = service.create_folder("Keep")
        add_image(a, "a", public_id="p-a")
        add_image(b, "b", public_id="p-b")
        add_image(b, "no-payload", public_id=None)
        kept_image = add_image(keep, "k", public_id="p-keep")
        purged_ids = [a.id, b.id]

        service.hard_delete_folder(a.id)

        assert db_session.query(Folder).filter(Folder.id.in_(purged_ids)).count() == 0
        assert db_session.query(Image).filter(Image.folder_id.in_(purged_ids)).count() == 0
        assert sorted(object_store.destroyed) == ["p-a", "p-b"]
        assert db_session.get(Folder, keep.id) is not None
        assert db_session.get(Image, kept_image.id) is not None

    def test_payload_failure_does_not_stop_the_purge(
        self, service, db_session, add_image, object_store
    ):
        a = service.create_folder("A")
        add_image(a, "one", public_id="p-1")
        add_image(a, "two", public_id="p-2")
        add_image(a, "three", public_id="p-3")
        object_store.failing.add("p-1")

        service.hard_delete_folder(a.id)

        assert object_store.destroyed == ["p-1", "p-2", "p-3"]
        assert db_session.query(Image).count() == 0
        assert db_session.query(Folder).count() == 0

    def test_works_on_trashed_folder(self, service, db_session):
        a = service.create_folder("A")
        service.soft_delete_folder(a.id, now=NOW)

        service.hard_delete_folder(a.id)

        assert db_session.query(Folder).count() == 0

    def test_missing_folder_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.hard_delete_folder(777)


class TestRestore:
    def test_round_trips_folder_and_direct_images(self, service, db_session, add_image):
        a = service.create_folder("A")
        image = add_image(a)

        service.soft_delete_folder(a.id, now=NOW)
        restored = service.restore_folder(a.id)

        assert restored.is_deleted is False
        assert restored.deleted_at is None
        image = db_session.get(Image, image.id)
        assert image.is_deleted is False
        assert image.deleted_at is None

    def test_restore_is_shallow(self, service, db_session, add_image):
        a = service.create_folder("A")
        b = service.create_folder("B", a.id)
        nested_image = add_image(b, "nested")

        service.soft_delete_folder(a.id, now=NOW)
        service.restore_folder(a.id)

        assert db_session.get(Folder, a.id).is_deleted is False
        assert db_session.get(Folder, b.id).is_deleted is True
        assert db_session.get(Image, nested_image.id).is_deleted is True

    def test_active_folder_is_not_found(self, service):
        a = service.create_folder("A")
        with pytest.raises(NotFoundError):
            service.restore_folder(a.id)

    def test_name_taken_meanwhile_conflicts(self, service):
        a = service.create_folder("A")
        service.soft_delete_folder(a.id, now=NOW)
        service.create_folder("A")

        with pytest.raises(ConflictError):
            service.restore_folder(a.id)


def test_list_folders_orders_parents_before_children(service):
    b = service.create_folder("B")
    a = service.create_folder("A")
    service.create_folder("Docs", a.id)
    service.create_folder("Docs", b.id)

    assert [f.path for f in service.list_folders()] == ["A", "A/Docs", "B", "B/Docs"]
