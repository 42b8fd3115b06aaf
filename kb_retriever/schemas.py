"""Data schemas for the knowledge-base engine."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel


class ChunkRecord(BaseModel):
    """A single stored chunk: its text, source filename and embedding."""
    content: str
    filename: str
    embedding: List[float]


class SearchResult(BaseModel):
    """A ranked search hit. Vectors are never included."""
    content: str
    filename: str
    score: float


class Bucket(BaseModel):
    """A named knowledge-base collection."""
    id: str
    name: str
    description: str = ""
    created_at: str
    file_count: int = 0


class BucketFile(BaseModel):
    """Metadata for one uploaded document in a bucket."""
    id: str
    bucket_id: str
    filename: str
    file_type: str
    file_size: int
    chunk_count: int
    created_at: str
