"""Exception types raised by the retrieval engine."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class KnowledgeBaseError(Exception):
    """Base class for all engine errors."""
    pass


class ParseError(KnowledgeBaseError):
    """Raised when a document cannot be read or its text extracted."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = str(path) if path is not None else None
        if self.path:
            message = f"{message} ({self.path})"
        super().__init__(message)


class UnsupportedFileType(ParseError):
    """Raised for extensions or type tags the parser does not handle."""
    pass


class EmptyDocument(KnowledgeBaseError):
    """Raised when a parsed document contains no text."""
    pass


class NoChunksProduced(KnowledgeBaseError):
    """Raised when chunking yields nothing to embed."""
    pass


class EmbedderError(KnowledgeBaseError):
    """Base class for embedding subsystem failures."""
    pass


class CacheNotInitialized(EmbedderError):
    """Raised when the model cache directory was never configured."""
    pass


class ModelLoadError(EmbedderError):
    """Raised when the embedding model cannot be downloaded or loaded."""
    pass


class EmbeddingError(EmbedderError):
    """Raised when inference fails or returns malformed vectors."""
    pass


class StoreIOError(KnowledgeBaseError):
    """Raised when a bucket store cannot be read or written."""
    pass


class DimensionMismatch(KnowledgeBaseError):
    """Raised when vectors do not share the store's dimension."""
    pass
