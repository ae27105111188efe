"""
Object storage for intake form assets, backed by MongoDB GridFS.

Each bucket is a GridFS bucket in the application database; objects are
addressed by ``(bucket, key)`` and exposed under ``ASSET_BASE_URL``.
"""

import logging
from typing import Optional

from gridfs import GridFSBucket, NoFile
from gridfs.grid_file import GridOut
from pymongo.database import Database

from app.config import settings

logger = logging.getLogger(__name__)


def build_asset_url(bucket: str, key: str, base_url: Optional[str] = None) -> str:
    return f"{(base_url or settings.ASSET_BASE_URL).rstrip('/')}/{bucket}/{key}"


class GridFSObjectStorage:
    """Stores and serves binary assets from GridFS buckets."""

    def __init__(self, db: Database, base_url: Optional[str] = None):
        self.db = db
        self.base_url = base_url or settings.ASSET_BASE_URL

    def _bucket(self, bucket: str) -> GridFSBucket:
        return GridFSBucket(self.db, bucket_name=bucket)

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        file_id = self._bucket(bucket).upload_from_stream(
            key,
            data,
            metadata={"content_type": content_type or "application/octet-stream"},
        )
        logger.debug(f"Stored {len(data)} bytes as {bucket}/{key} ({file_id})")
        return build_asset_url(bucket, key, self.base_url)

    def open(self, bucket: str, key: str) -> Optional[GridOut]:
        """Latest revision of ``key``, or None if it was never stored."""
        try:
            return self._bucket(bucket).open_download_stream_by_name(key)
        except NoFile:
            return None
