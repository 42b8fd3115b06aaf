"""Build bucket stores from uploaded documents."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import List, Sequence, Union

from .embedder import LocalEmbedder
from .errors import EmptyDocument, NoChunksProduced, ParseError
from .parser import detect_file_type, parse_file
from .schemas import Bucket, BucketFile
from .store import BucketStore
from .utils import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, chunk_text, utc_now

logger = logging.getLogger(__name__)


def create_bucket(store: BucketStore, name: str, description: str = "") -> Bucket:
    """Allocate a new bucket id and an empty store for it."""
    bucket = Bucket(
        id=str(uuid.uuid4()),
        name=name,
        description=description,
        created_at=utc_now(),
        file_count=0,
    )
    store.init(bucket.id)
    logger.info("Created bucket %s (%s)", bucket.name, bucket.id)
    return bucket


def delete_bucket(store: BucketStore, bucket_id: str) -> None:
    """Drop the bucket's store."""
    store.delete(bucket_id)


def embed_and_store(
    store: BucketStore,
    embedder: LocalEmbedder,
    bucket_id: str,
    filename: str,
    chunks: Sequence[str],
) -> int:
    """
    Embed chunks and append them to the bucket tagged with ``filename``.

    Embedding happens before the store is touched, so an embedding failure
    leaves the bucket unchanged.

    Returns:
        Number of chunks stored
    """
    if not chunks:
        return 0

    logger.info("Generating embeddings for %d chunks using local model...", len(chunks))
    vectors = embedder.embed(chunks, show_progress=True)
    logger.info("Generated %d embeddings", len(vectors))

    store.append(bucket_id, filename, list(chunks), vectors)
    return len(chunks)


def delete_document_chunks(store: BucketStore, bucket_id: str, filename: str) -> int:
    """Remove all chunks whose source filename matches."""
    return store.remove_by_filename(bucket_id, filename)


def extract_chunks(
    file_path: Union[str, Path],
    file_type: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    """
    Parse a document and split it into word windows.

    Raises:
        ParseError: If the document cannot be parsed
        EmptyDocument: If no text could be extracted
        NoChunksProduced: If chunking yields nothing
    """
    content = parse_file(file_path, file_type)
    logger.info("Parsed content length: %d characters", len(content))

    if not content.strip():
        raise EmptyDocument(
            f"{Path(file_path).name} appears to be empty or text could not be extracted. "
            "For PDFs, ensure the file contains actual text (not just images)."
        )

    chunks = chunk_text(content, chunk_size, overlap)
    logger.info("Created %d chunks", len(chunks))

    if not chunks:
        raise NoChunksProduced(f"No content could be extracted from {Path(file_path).name}.")
    return chunks


def ingest_file(
    store: BucketStore,
    embedder: LocalEmbedder,
    bucket_id: str,
    file_path: Union[str, Path],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> BucketFile:
    """
    Run the full upload pipeline for one document.

    Args:
        store: Bucket store to append to
        embedder: Embedder used for the chunks
        bucket_id: Target bucket
        file_path: Document on disk; its basename links chunks to the document
        chunk_size: Words per chunk
        overlap: Words shared by consecutive chunks

    Returns:
        BucketFile metadata for the host's document registry

    Raises:
        ParseError: If the file is missing, unsupported or unreadable
        EmptyDocument: If no text could be extracted
        NoChunksProduced: If chunking yields nothing
        EmbedderError: If embedding fails
        StoreIOError: If the bucket store cannot be updated
    """
    path = Path(file_path)
    logger.info("Starting file upload: %s", path)

    if not path.is_file():
        raise ParseError("File not found", path)

    file_type = detect_file_type(path)
    logger.info("File type detected: %s", file_type)

    try:
        file_size = path.stat().st_size
    except OSError as exc:
        raise ParseError(f"Failed to get file metadata: {exc}", path) from exc

    chunks = extract_chunks(path, file_type, chunk_size, overlap)
    embed_and_store(store, embedder, bucket_id, path.name, chunks)

    bucket_file = BucketFile(
        id=str(uuid.uuid4()),
        bucket_id=bucket_id,
        filename=path.name,
        file_type=file_type,
        file_size=file_size,
        chunk_count=len(chunks),
        created_at=utc_now(),
    )
    logger.info("File upload complete: %d chunks indexed", bucket_file.chunk_count)
    return bucket_file
