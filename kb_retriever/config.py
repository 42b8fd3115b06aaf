"""Engine configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .embedder import DEFAULT_BATCH_SIZE, DEFAULT_MODEL
from .search import DEFAULT_TOP_K
from .utils import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE


class EngineConfig(BaseModel):
    """Settings for a KnowledgeEngine."""
    data_dir: Path
    cache_dir: Optional[Path] = None
    model_name: str = DEFAULT_MODEL
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    chunk_overlap: int = Field(default=DEFAULT_CHUNK_OVERLAP, ge=0)
    top_k: int = Field(default=DEFAULT_TOP_K, ge=1)
    embed_batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)

    @property
    def model_cache_dir(self) -> Path:
        return self.cache_dir or self.data_dir / "models_cache"

    @classmethod
    def from_env(cls, **overrides) -> "EngineConfig":
        """Build a config from ``KB_*``, ``EMBED_MODEL`` and ``BATCH_SIZE`` environment variables."""
        values = {
            "data_dir": os.getenv("KB_DATA_DIR", "./kb_data"),
            "cache_dir": os.getenv("KB_MODEL_CACHE") or None,
            "model_name": os.getenv("EMBED_MODEL", DEFAULT_MODEL),
            "chunk_size": os.getenv("KB_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
            "chunk_overlap": os.getenv("KB_CHUNK_OVERLAP", DEFAULT_CHUNK_OVERLAP),
            "top_k": os.getenv("KB_TOP_K", DEFAULT_TOP_K),
            "embed_batch_size": os.getenv("BATCH_SIZE", DEFAULT_BATCH_SIZE),
        }
        values.update(overrides)
        return cls(**values)
