"""
Dual-write media attachment: object store + database row, no shared transaction.

The only tolerated inconsistency is an orphaned remote object. A row that points
at a deleted object is a broken link on the public site, so every path orders its
steps to avoid it:

  attach   validate -> upload -> write row   (row write fails: delete the new object)
  replace  validate -> upload -> write row -> delete old object
  detach   delete remote object -> delete row

Cleanup deletes are best-effort: failures are logged and never change the
outcome reported to the caller.
"""

from __future__ import annotations
from typing import Callable, Optional, TypeVar
import logging

from trekdesk.core.monitoring import track_performance
from trekdesk.services.media_store import (
    MediaStore,
    MediaUpload,
    StoredObject,
    validate_upload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MediaAttachmentService:
    def __init__(self, store: MediaStore):
        self.store = store

    @track_performance("media attach")
    def attach(self, upload: MediaUpload, kind: str,
               write_row: Callable[[StoredObject], T]) -> T:
        """Upload a new object and record it. Row-write errors propagate after cleanup."""
        validate_upload(upload.content_type, upload.size, kind)
        stored = self.store.upload(upload, kind)
        try:
            return write_row(stored)
        except Exception:
            self._discard(stored.public_id, stored.resource_type, "row write failed")
            raise

    @track_performance("media replace")
    def replace(self, upload: MediaUpload, kind: str,
                old_public_id: Optional[str], old_resource_type: str,
                write_row: Callable[[StoredObject], T]) -> T:
        """
        Swap the object a row points at. The old object is removed only after the
        row references the new one; if that removal fails the old object leaks.
        """
        result = self.attach(upload, kind, write_row)
        if old_public_id:
            self._discard(old_public_id, old_resource_type, "replaced")
        return result

    @track_performance("media detach")
    def detach(self, public_id: Optional[str], resource_type: str,
               delete_row: Callable[[], T]) -> T:
        """
        Remove the remote object, then the row. If the row delete fails the row
        stays in place and a retry of the whole operation finishes the job.
        """
        if public_id:
            self._discard(public_id, resource_type, "row removed")
        return delete_row()

    def _discard(self, public_id: str, resource_type: str, reason: str) -> None:
        try:
            self.store.delete(public_id, resource_type)
            logger.info(f"Deleted remote object ({reason})", extra={"public_id": public_id})
        except Exception as e:
            logger.warning(
                f"Best-effort delete of remote object failed ({reason}): {e}",
                extra={"public_id": public_id},
            )
