import logging
import os
import re
import unicodedata
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from app.core.config import settings
from app.core.exceptions import UpstreamFailureError
from app.utils.supabase_client import get_supabase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    url: str
    public_id: str


def sanitize_filename(filename: str) -> str:
    name, ext = os.path.splitext(filename)

    name = unicodedata.normalize("NFD", name).encode("ascii", "ignore").decode("utf-8")

    name = re.sub(r"\s+", "_", name)

    name = re.sub(r"[^a-zA-Z0-9._-]", "", name)

    return f"{name}{ext}"


class SupabaseObjectStore:
    """Image payloads in a Supabase Storage bucket.

    ``public_id`` is the object key inside the bucket.
    """

    def __init__(self, bucket: str = None, client=None):
        self.bucket = bucket or settings.supabase_bucket
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def store(self, data: bytes, filename: str, content_type: str, prefix: str = "") -> StoredObject:
        key = f"{uuid.uuid4().hex}-{sanitize_filename(filename)}"
        if prefix:
            key = f"{prefix.strip('/')}/{key}"
        try:
            storage = self.client.storage.from_(self.bucket)
            res = storage.upload(key, data, file_options={"content-type": content_type})
            if not res.path:
                raise UpstreamFailureError(f"Failed to upload {filename}")
            url = storage.get_public_url(res.path)
        except UpstreamFailureError:
            raise
        except Exception as e:
            logger.exception(f"Upload failed for {filename}: {e}")
            raise UpstreamFailureError(f"Failed to upload {filename}") from e

        logger.info(f"Uploaded {filename} to Supabase -> {res.path}")
        return StoredObject(url=url, public_id=res.path)

    def destroy(self, public_id: str) -> bool:
        try:
            self.client.storage.from_(self.bucket).remove([public_id])
        except Exception as e:
            logger.warning(f"Failed to delete {public_id} from Supabase: {e}")
            return False
        return True


def destroy_quietly(object_store, public_id: Optional[str]) -> bool:
    """Remove a payload without letting a failure escape.

    Returns False when there was nothing to remove or the store refused.
    """
    if not public_id:
        return False
    try:
        destroyed = object_store.destroy(public_id)
    except Exception as e:
        logger.warning(f"Failed to delete payload {public_id}: {e}")
        return False
    if not destroyed:
        logger.warning(f"Payload {public_id} was not deleted, continuing")
    return bool(destroyed)


@lru_cache
def get_object_store() -> SupabaseObjectStore:
    return SupabaseObjectStore()
