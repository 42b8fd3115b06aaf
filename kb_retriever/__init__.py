"""KB Retriever - bucketed knowledge-base retrieval for chat grounding."""

from .builder import create_bucket, delete_bucket, embed_and_store, ingest_file
from .config import EngineConfig
from .embedder import LocalEmbedder, get_embedder, init_cache_dir
from .engine import KnowledgeEngine
from .errors import (
    CacheNotInitialized,
    DimensionMismatch,
    EmbedderError,
    EmbeddingError,
    EmptyDocument,
    KnowledgeBaseError,
    ModelLoadError,
    NoChunksProduced,
    ParseError,
    StoreIOError,
    UnsupportedFileType,
)
from .parser import detect_file_type, parse_file
from .schemas import Bucket, BucketFile, ChunkRecord, SearchResult
from .search import RELEVANCE_FLOOR, search
from .store import BucketStore
from .utils import chunk_text, cosine_similarity

__version__ = "0.1.0"

__all__ = [
    "KnowledgeEngine",
    "EngineConfig",
    "BucketStore",
    "LocalEmbedder",
    "get_embedder",
    "init_cache_dir",
    "create_bucket",
    "delete_bucket",
    "embed_and_store",
    "ingest_file",
    "detect_file_type",
    "parse_file",
    "chunk_text",
    "cosine_similarity",
    "search",
    "RELEVANCE_FLOOR",
    "Bucket",
    "BucketFile",
    "ChunkRecord",
    "SearchResult",
    "KnowledgeBaseError",
    "ParseError",
    "UnsupportedFileType",
    "EmptyDocument",
    "NoChunksProduced",
    "EmbedderError",
    "ModelLoadError",
    "EmbeddingError",
    "CacheNotInitialized",
    "StoreIOError",
    "DimensionMismatch",
]
