"""Per-bucket chunk stores persisted as JSON files."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Sequence, Union

from pydantic import ValidationError

from .errors import DimensionMismatch, StoreIOError
from .schemas import ChunkRecord
from .utils import validate_bucket_id

logger = logging.getLogger(__name__)


BUCKETS_DIRNAME = "buckets"
CHUNKS_FILENAME = "chunks.json"


class BucketStore:
    """
    Flat, ordered chunk records for each bucket.

    Layout::

        <data_dir>/buckets/<bucket_id>/chunks.json

    Every mutation reads the whole file and writes a full replacement
    through a temporary file, so a failed write leaves the previous
    contents in place. Writers to the same bucket must be serialized by
    the caller.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self.root = self.data_dir / BUCKETS_DIRNAME

    def bucket_path(self, bucket_id: str) -> Path:
        return self.root / validate_bucket_id(bucket_id)

    def chunks_path(self, bucket_id: str) -> Path:
        return self.bucket_path(bucket_id) / CHUNKS_FILENAME

    def exists(self, bucket_id: str) -> bool:
        return self.chunks_path(bucket_id).exists()

    def init(self, bucket_id: str) -> None:
        """Create the bucket directory with an empty store, replacing any old one."""
        bucket_path = self.bucket_path(bucket_id)
        try:
            bucket_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreIOError(f"Failed to create bucket store {bucket_id}: {exc}") from exc
        self._write(bucket_id, [])

    def delete(self, bucket_id: str) -> None:
        """Remove the bucket's store entirely. No-op if absent."""
        bucket_path = self.bucket_path(bucket_id)
        if not bucket_path.exists():
            return
        try:
            shutil.rmtree(bucket_path)
        except OSError as exc:
            raise StoreIOError(f"Failed to delete bucket store {bucket_id}: {exc}") from exc
        logger.info("Deleted bucket store: %s", bucket_id)

    def load(self, bucket_id: str) -> List[ChunkRecord]:
        """
        Load all chunk records of a bucket in append order.

        Returns an empty list when the store file does not exist.

        Raises:
            StoreIOError: If the file cannot be read or is malformed
        """
        chunks_file = self.chunks_path(bucket_id)
        if not chunks_file.exists():
            return []

        try:
            with open(chunks_file, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise StoreIOError(f"Failed to read chunk store {chunks_file}: {exc}") from exc

        if not isinstance(data, list):
            raise StoreIOError(f"Chunk store {chunks_file} is not a list of records")

        try:
            return [ChunkRecord.model_validate(item) for item in data]
        except ValidationError as exc:
            raise StoreIOError(f"Invalid record in chunk store {chunks_file}: {exc}") from exc

    def append(
        self,
        bucket_id: str,
        filename: str,
        chunk_texts: Sequence[str],
        embeddings: Sequence[Sequence[float]],
    ) -> int:
        """
        Append one record per (text, embedding) pair, tagged with ``filename``.

        Returns:
            Total number of records in the bucket after the write

        Raises:
            ValueError: If texts and embeddings differ in length
            DimensionMismatch: If a vector's dimension differs from the store's
            StoreIOError: If loading or persisting fails
        """
        if len(chunk_texts) != len(embeddings):
            raise ValueError(
                f"Got {len(chunk_texts)} chunk texts but {len(embeddings)} embeddings"
            )

        records = self.load(bucket_id)
        if not chunk_texts:
            return len(records)

        expected_dim = len(records[0].embedding) if records else len(embeddings[0])
        for embedding in embeddings:
            if len(embedding) != expected_dim:
                raise DimensionMismatch(
                    f"Embedding dimension {len(embedding)} does not match store dimension {expected_dim}"
                )

        for text, embedding in zip(chunk_texts, embeddings):
            records.append(ChunkRecord(content=text, filename=filename, embedding=list(embedding)))

        self._write(bucket_id, records)
        logger.info("Stored %d total chunks in bucket %s", len(records), bucket_id)
        return len(records)

    def remove_by_filename(self, bucket_id: str, filename: str) -> int:
        """
        Drop every record whose filename equals ``filename``.

        Returns:
            Number of records removed (0 when the store does not exist)
        """
        if not self.exists(bucket_id):
            return 0

        records = self.load(bucket_id)
        kept = [record for record in records if record.filename != filename]
        removed = len(records) - len(kept)

        self._write(bucket_id, kept)
        logger.info("Removed %d chunks for %s from bucket %s", removed, filename, bucket_id)
        return removed

    def _write(self, bucket_id: str, records: List[ChunkRecord]) -> None:
        """Persist records via temp file and atomic replace."""
        bucket_path = self.bucket_path(bucket_id)
        chunks_file = bucket_path / CHUNKS_FILENAME

        try:
            bucket_path.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".chunks_", suffix=".tmp", dir=str(bucket_path))
        except OSError as exc:
            raise StoreIOError(f"Failed to prepare write for bucket {bucket_id}: {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump([record.model_dump() for record in records], handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, chunks_file)
        except (OSError, TypeError, ValueError) as exc:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreIOError(f"Failed to write chunk store {chunks_file}: {exc}") from exc
