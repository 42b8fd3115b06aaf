"""Utility functions for chunking and vector math."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Sequence

import numpy as np


DEFAULT_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 50


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def validate_bucket_id(bucket_id: str) -> str:
    """Ensure bucket id is a single, safe path component."""
    if not bucket_id or bucket_id in (".", ".."):
        raise ValueError(f"Invalid bucket id: {bucket_id!r}")
    separators = {os.sep, "/", "\\"}
    if os.altsep:
        separators.add(os.altsep)
    if any(sep in bucket_id for sep in separators) or "\x00" in bucket_id:
        raise ValueError(f"Invalid bucket id: {bucket_id!r}")
    return bucket_id


def iter_chunks(text: str, window_size: int, overlap: int) -> Iterator[str]:
    """
    Yield overlapping word windows over whitespace-delimited tokens.

    Each window holds up to ``window_size`` words joined by single spaces.
    The start advances by ``window_size - overlap`` words, never less than one.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")

    words = text.split()
    total = len(words)
    step = max(window_size - overlap, 1)

    start = 0
    while start < total:
        end = min(start + window_size, total)
        chunk = " ".join(words[start:end])
        if chunk.strip():
            yield chunk
        if end >= total:
            break
        start += step


def chunk_text(
    text: str,
    window_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[str]:
    """Split text into overlapping word windows."""
    return list(iter_chunks(text, window_size, overlap))


def iter_batches(items: List, batch_size: int) -> Iterable[List]:
    """Yield batches of items."""
    for start in range(0, len(items), batch_size):
        yield items[start : start + batch_size]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero magnitude."""
    va = np.asarray(a, dtype=np.float32)
    vb = np.asarray(b, dtype=np.float32)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions differ: {va.shape[0]} != {vb.shape[0]}")
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def cosine_similarities(query: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of ``query`` against every row of ``matrix``.

    Rows (or a query) with zero magnitude score 0.0 instead of NaN.
    """
    q = np.asarray(query, dtype=np.float32)
    if matrix.size == 0:
        return np.zeros(0, dtype=np.float32)

    row_norms = np.linalg.norm(matrix, axis=1)
    query_norm = np.linalg.norm(q)
    dots = matrix @ q
    denom = row_norms * query_norm

    scores = np.zeros(matrix.shape[0], dtype=np.float32)
    nonzero = denom > 0
    scores[nonzero] = dots[nonzero] / denom[nonzero]
    return scores
