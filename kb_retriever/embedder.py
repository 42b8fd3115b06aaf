"""Local embedding model, loaded once per process and shared."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from langchain_community.embeddings import FastEmbedEmbeddings
from langchain_core.embeddings import Embeddings
from tqdm import tqdm

from .errors import CacheNotInitialized, EmbeddingError, ModelLoadError
from .utils import iter_batches

logger = logging.getLogger(__name__)


DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_BATCH_SIZE = 32

ModelFactory = Callable[[str, Path], Embeddings]

_cache_dir: Optional[Path] = None
_cache_lock = threading.Lock()

_handles: Dict[str, "_ModelHandle"] = {}
_handles_lock = threading.Lock()


def init_cache_dir(path: Union[str, Path]) -> Path:
    """
    Configure the process-wide model weight cache.

    Only the first call takes effect; later calls keep the original
    directory and return it.
    """
    global _cache_dir

    with _cache_lock:
        if _cache_dir is not None:
            if Path(path) != _cache_dir:
                logger.warning("Model cache already set to %s; ignoring %s", _cache_dir, path)
            return _cache_dir

        cache_dir = Path(path)
        cache_dir.mkdir(parents=True, exist_ok=True)
        _cache_dir = cache_dir
        logger.info("Using model cache directory: %s", cache_dir)
        return cache_dir


def get_cache_dir() -> Path:
    """Return the configured cache directory."""
    if _cache_dir is None:
        raise CacheNotInitialized("Cache directory not initialized. Call init_cache_dir first.")
    return _cache_dir


def _fastembed_factory(model_name: str, cache_dir: Path) -> Embeddings:
    return FastEmbedEmbeddings(model_name=model_name, cache_dir=str(cache_dir))


class _ModelHandle:
    """Single-assignment holder for one loaded model."""

    def __init__(self, model_name: str, factory: ModelFactory):
        self.model_name = model_name
        self.factory = factory
        self.model: Optional[Embeddings] = None
        self.lock = threading.Lock()

    def get(self, show_progress: bool) -> Embeddings:
        model = self.model
        if model is not None:
            return model

        with self.lock:
            if self.model is None:
                cache_dir = get_cache_dir()
                level = logging.INFO if show_progress else logging.DEBUG
                logger.log(level, "Loading local embedding model %s...", self.model_name)
                try:
                    self.model = self.factory(self.model_name, cache_dir)
                except Exception as exc:
                    raise ModelLoadError(
                        f"Failed to load embedding model '{self.model_name}': {exc}"
                    ) from exc
                logger.log(level, "Embedding model loaded: %s", self.model_name)
            return self.model


class LocalEmbedder:
    """
    Lazily loaded embedding model.

    The first call to ``get_model`` loads the weights under a lock; every
    other caller waits for it or reuses the loaded handle. A failed load
    is not cached, so the next call tries again. Embedders built by
    ``get_embedder`` share one handle per model name while each keeps its
    own ``batch_size``.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        batch_size: int = DEFAULT_BATCH_SIZE,
        model_factory: Optional[ModelFactory] = None,
        handle: Optional[_ModelHandle] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.model_name = model_name
        self.batch_size = batch_size
        self._handle = handle or _ModelHandle(model_name, model_factory or _fastembed_factory)

    @property
    def loaded(self) -> bool:
        return self._handle.model is not None

    def shares_model_with(self, other: "LocalEmbedder") -> bool:
        return self._handle is other._handle

    def get_model(self, show_progress: bool = False) -> Embeddings:
        """Return the loaded model, loading it on first use."""
        return self._handle.get(show_progress)

    def embed(self, texts: Iterable[str], show_progress: bool = False) -> List[List[float]]:
        """
        Embed texts in order, one vector per input.

        Args:
            texts: Texts to embed
            show_progress: Surface model loading and a progress bar

        Returns:
            Vectors of equal length, aligned with ``texts``

        Raises:
            CacheNotInitialized: If no cache directory was configured
            ModelLoadError: If the model cannot be loaded
            EmbeddingError: If inference fails or returns malformed output
        """
        texts = list(texts)
        if not texts:
            return []

        model = self.get_model(show_progress=show_progress)
        vectors: List[List[float]] = []

        with tqdm(total=len(texts), desc="Embedding chunks", disable=not show_progress) as progress:
            for batch in iter_batches(texts, self.batch_size):
                try:
                    batch_vectors = model.embed_documents(batch)
                except Exception as exc:
                    raise EmbeddingError(f"Embedding failed: {exc}") from exc

                if len(batch_vectors) != len(batch):
                    raise EmbeddingError("Embedding batch returned mismatched vector count.")

                vectors.extend([float(value) for value in vector] for vector in batch_vectors)
                progress.update(len(batch))

        dims = {len(vector) for vector in vectors}
        if len(dims) != 1 or 0 in dims:
            raise EmbeddingError(f"Embedding model returned inconsistent dimensions: {sorted(dims)}")

        return vectors

    def embed_query(self, text: str) -> List[float]:
        """Embed one text as a single-element batch."""
        return self.embed([text])[0]


def get_embedder(model_name: str = DEFAULT_MODEL, batch_size: int = DEFAULT_BATCH_SIZE) -> LocalEmbedder:
    """
    Return an embedder backed by the process-wide model for ``model_name``.

    The model is loaded at most once per name; ``batch_size`` applies only
    to the returned embedder.
    """
    with _handles_lock:
        handle = _handles.get(model_name)
        if handle is None:
            handle = _ModelHandle(model_name, _fastembed_factory)
            _handles[model_name] = handle
    return LocalEmbedder(model_name=model_name, batch_size=batch_size, handle=handle)
