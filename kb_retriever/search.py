"""Rank a bucket's chunks against a query by cosine similarity."""

from __future__ import annotations

import logging
from typing import List

import numpy as np

from .embedder import LocalEmbedder
from .errors import DimensionMismatch
from .schemas import SearchResult
from .store import BucketStore
from .utils import cosine_similarities

logger = logging.getLogger(__name__)


# Results must score strictly above this to be returned
RELEVANCE_FLOOR = 0.1

DEFAULT_TOP_K = 5

_FLOOR = np.float32(RELEVANCE_FLOOR)


def search(
    store: BucketStore,
    embedder: LocalEmbedder,
    bucket_id: str,
    query: str,
    top_k: int = DEFAULT_TOP_K,
) -> List[SearchResult]:
    """
    Return up to ``top_k`` chunks most similar to ``query``.

    All records are scored exhaustively and stably sorted by descending
    similarity, so ties keep store order. The first ``top_k`` are taken and
    then any scoring at or below ``RELEVANCE_FLOOR`` are dropped, so fewer
    than ``top_k`` results may come back.

    Raises:
        StoreIOError: If the bucket store cannot be read
        DimensionMismatch: If the query vector does not match stored vectors
        EmbedderError: If the query cannot be embedded
    """
    records = store.load(bucket_id)
    logger.debug("Loaded %d chunks from bucket %s", len(records), bucket_id)

    if not records or top_k <= 0:
        return []

    logger.info("Searching %d chunks for: %s", len(records), query[:50])
    query_vector = embedder.embed([query], show_progress=False)[0]

    try:
        matrix = np.asarray([record.embedding for record in records], dtype=np.float32)
    except ValueError:
        matrix = None
    if matrix is None or matrix.ndim != 2 or matrix.shape[1] != len(query_vector):
        raise DimensionMismatch(
            f"Query dimension {len(query_vector)} does not match stored vectors in bucket {bucket_id}"
        )

    scores = cosine_similarities(query_vector, matrix)
    order = np.argsort(-scores, kind="stable")
    logger.debug("Top similarity scores: %s", [round(float(scores[i]), 4) for i in order[:3]])

    results = [
        SearchResult(
            content=records[i].content,
            filename=records[i].filename,
            score=float(scores[i]),
        )
        for i in order[:top_k]
        if scores[i] > _FLOOR
    ]

    logger.info("Returning %d relevant results", len(results))
    return results
