"""Shared fixtures for KB Retriever tests."""

import hashlib
import threading
from typing import Dict, List, Optional

import pytest
from langchain_core.embeddings import Embeddings

from kb_retriever import embedder as embedder_module
from kb_retriever.embedder import LocalEmbedder
from kb_retriever.store import BucketStore


DIM = 32


def _word_vector(text: str) -> List[float]:
    """Deterministic bag-of-words vector: identical texts give identical vectors."""
    vector = [0.0] * DIM
    for word in text.lower().split():
        idx = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % DIM
        vector[idx] += 1.0
    return vector


class FakeEmbeddings(Embeddings):
    """In-memory stand-in for the local embedding model."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None):
        self.vectors = vectors or {}
        self.calls: List[List[str]] = []
        self._lock = threading.Lock()

    def _vector(self, text: str) -> List[float]:
        if text in self.vectors:
            return list(self.vectors[text])
        return _word_vector(text)

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        with self._lock:
            self.calls.append(list(texts))
        return [self._vector(text) for text in texts]

    def embed_query(self, text: str) -> List[float]:
        return self._vector(text)


@pytest.fixture(autouse=True)
def model_cache(tmp_path, monkeypatch):
    """Point the process-wide model cache at a temp dir for each test."""
    cache_dir = tmp_path / "models_cache"
    cache_dir.mkdir()
    monkeypatch.setattr(embedder_module, "_cache_dir", cache_dir)
    return cache_dir


@pytest.fixture
def fake_model():
    return FakeEmbeddings()


@pytest.fixture
def embedder(fake_model):
    return LocalEmbedder(model_factory=lambda name, cache_dir: fake_model)


@pytest.fixture
def store(tmp_path):
    return BucketStore(tmp_path / "data")
