"""High-level entry point wiring store, embedder and pipeline together."""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from . import builder
from .config import EngineConfig
from .embedder import LocalEmbedder, get_embedder, init_cache_dir
from .parser import parse_file
from .schemas import Bucket, BucketFile, ChunkRecord, SearchResult
from .search import search
from .store import BucketStore
from .utils import chunk_text

logger = logging.getLogger(__name__)


class KnowledgeEngine:
    """
    Knowledge-base retrieval engine.

    Mutating operations on one bucket are serialized by a per-bucket lock;
    different buckets proceed independently. The ``a*`` coroutines run the
    blocking work on a worker thread pool so an asyncio host loop is not
    stalled by parsing, embedding or disk I/O. The pool has several workers
    by default, so a long ingest in one bucket does not queue searches on
    another.
    """

    def __init__(
        self,
        config: EngineConfig,
        embedder: Optional[LocalEmbedder] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config
        self.store = BucketStore(config.data_dir)
        if embedder is None:
            init_cache_dir(config.model_cache_dir)
            embedder = get_embedder(config.model_name, config.embed_batch_size)
        self.embedder = embedder
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="kb-worker")
        logger.debug("Knowledge engine ready: data_dir=%s, model=%s", config.data_dir, self.embedder.model_name)

    def _bucket_lock(self, bucket_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(bucket_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[bucket_id] = lock
            return lock

    # -- bucket lifecycle -------------------------------------------------

    def create_bucket(self, name: str, description: str = "") -> Bucket:
        return builder.create_bucket(self.store, name, description)

    def create_bucket_store(self, bucket_id: str) -> None:
        with self._bucket_lock(bucket_id):
            self.store.init(bucket_id)

    def delete_bucket_store(self, bucket_id: str) -> None:
        lock = self._bucket_lock(bucket_id)
        with lock:
            builder.delete_bucket(self.store, bucket_id)
        with self._locks_guard:
            # Keep the entry if another writer has already taken the lock again.
            if self._locks.get(bucket_id) is lock and not lock.locked():
                del self._locks[bucket_id]

    delete_bucket = delete_bucket_store

    # -- pipeline stages ----------------------------------------------------

    def parse(self, file_path: Union[str, Path], file_type: str) -> str:
        return parse_file(file_path, file_type)

    def chunk(self, text: str, window: Optional[int] = None, overlap: Optional[int] = None) -> List[str]:
        window = self.config.chunk_size if window is None else window
        overlap = self.config.chunk_overlap if overlap is None else overlap
        return chunk_text(text, window, overlap)

    def embed_and_store(self, bucket_id: str, filename: str, chunks: Sequence[str]) -> int:
        with self._bucket_lock(bucket_id):
            return builder.embed_and_store(self.store, self.embedder, bucket_id, filename, chunks)

    def delete_document_chunks(self, bucket_id: str, filename: str) -> int:
        with self._bucket_lock(bucket_id):
            return builder.delete_document_chunks(self.store, bucket_id, filename)

    def ingest_file(self, bucket_id: str, file_path: Union[str, Path]) -> BucketFile:
        with self._bucket_lock(bucket_id):
            return builder.ingest_file(
                self.store,
                self.embedder,
                bucket_id,
                file_path,
                chunk_size=self.config.chunk_size,
                overlap=self.config.chunk_overlap,
            )

    def load(self, bucket_id: str) -> List[ChunkRecord]:
        return self.store.load(bucket_id)

    def search(self, bucket_id: str, query: str, top_k: Optional[int] = None) -> List[SearchResult]:
        k = self.config.top_k if top_k is None else top_k
        return search(self.store, self.embedder, bucket_id, query, k)

    # -- async variants -----------------------------------------------------

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args, **kwargs))

    async def acreate_bucket(self, name: str, description: str = "") -> Bucket:
        return await self._run(self.create_bucket, name, description)

    async def adelete_bucket(self, bucket_id: str) -> None:
        await self._run(self.delete_bucket_store, bucket_id)

    async def aingest_file(self, bucket_id: str, file_path: Union[str, Path]) -> BucketFile:
        return await self._run(self.ingest_file, bucket_id, file_path)

    async def adelete_document_chunks(self, bucket_id: str, filename: str) -> int:
        return await self._run(self.delete_document_chunks, bucket_id, filename)

    async def asearch(self, bucket_id: str, query: str, top_k: Optional[int] = None) -> List[SearchResult]:
        return await self._run(self.search, bucket_id, query, top_k)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "KnowledgeEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
