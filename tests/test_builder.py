"""Tests for the upload pipeline."""

import pytest

from kb_retriever import builder
from kb_retriever.builder import (
    create_bucket,
    delete_bucket,
    delete_document_chunks,
    embed_and_store,
    ingest_file,
)
from kb_retriever.embedder import LocalEmbedder
from kb_retriever.errors import (
    EmbeddingError,
    EmptyDocument,
    NoChunksProduced,
    ParseError,
    UnsupportedFileType,
)
from kb_retriever.search import search

from conftest import FakeEmbeddings


def _words(prefix, n):
    return " ".join(f"{prefix}{i}" for i in range(n))


def test_create_bucket(store):
    bucket = create_bucket(store, "Handbook", "Team handbook")

    assert bucket.name == "Handbook"
    assert bucket.file_count == 0
    assert bucket.created_at
    assert store.exists(bucket.id)
    assert store.load(bucket.id) == []


def test_create_bucket_ids_are_unique(store):
    assert create_bucket(store, "a").id != create_bucket(store, "b").id


def test_delete_bucket(store):
    bucket = create_bucket(store, "tmp")
    delete_bucket(store, bucket.id)
    assert not store.bucket_path(bucket.id).exists()


def test_ingest_text_file(store, embedder, tmp_path):
    bucket = create_bucket(store, "docs")
    path = tmp_path / "notes.txt"
    path.write_text(_words("w", 120), encoding="utf-8")

    bucket_file = ingest_file(store, embedder, bucket.id, path, chunk_size=50, overlap=10)

    assert bucket_file.bucket_id == bucket.id
    assert bucket_file.filename == "notes.txt"
    assert bucket_file.file_type == "txt"
    assert bucket_file.file_size == path.stat().st_size
    assert bucket_file.chunk_count == 3

    records = store.load(bucket.id)
    assert len(records) == 3
    assert all(record.filename == "notes.txt" for record in records)
    assert records[0].content.split()[0] == "w0"


def test_ingest_markdown_uses_default_window(store, embedder, tmp_path):
    bucket = create_bucket(store, "docs")
    path = tmp_path / "guide.md"
    path.write_text("# Guide\n\n" + _words("w", 600), encoding="utf-8")

    bucket_file = ingest_file(store, embedder, bucket.id, path)

    assert bucket_file.file_type == "txt"
    assert bucket_file.chunk_count == 2
    assert len(store.load(bucket.id)[0].content.split()) == 500


def test_ingest_missing_file(store, embedder, tmp_path):
    bucket = create_bucket(store, "docs")
    with pytest.raises(ParseError):
        ingest_file(store, embedder, bucket.id, tmp_path / "nope.txt")


def test_ingest_unsupported_extension(store, embedder, tmp_path):
    bucket = create_bucket(store, "docs")
    path = tmp_path / "data.csv"
    path.write_text("a,b\n1,2", encoding="utf-8")

    with pytest.raises(UnsupportedFileType):
        ingest_file(store, embedder, bucket.id, path)


def test_ingest_blank_document(store, embedder, fake_model, tmp_path):
    """Whitespace-only text aborts before chunking and embedding."""
    bucket = create_bucket(store, "docs")
    path = tmp_path / "blank.txt"
    path.write_text("  \n\t \n", encoding="utf-8")

    with pytest.raises(EmptyDocument):
        ingest_file(store, embedder, bucket.id, path)
    assert fake_model.calls == []
    assert store.load(bucket.id) == []


def test_ingest_no_chunks(store, embedder, tmp_path, monkeypatch):
    bucket = create_bucket(store, "docs")
    path = tmp_path / "doc.txt"
    path.write_text("some words", encoding="utf-8")
    monkeypatch.setattr(builder, "chunk_text", lambda text, size, overlap: [])

    with pytest.raises(NoChunksProduced):
        ingest_file(store, embedder, bucket.id, path)


def test_embedding_failure_leaves_store_unchanged(store, tmp_path):
    class Broken(FakeEmbeddings):
        def embed_documents(self, texts):
            raise RuntimeError("inference failed")

    broken = LocalEmbedder(model_factory=lambda name, cache_dir: Broken())
    bucket = create_bucket(store, "docs")
    path = tmp_path / "doc.txt"
    path.write_text("hello there", encoding="utf-8")

    with pytest.raises(EmbeddingError):
        ingest_file(store, broken, bucket.id, path)
    assert store.load(bucket.id) == []


def test_embed_and_store_nothing(store, embedder, fake_model):
    store.init("b1")
    assert embed_and_store(store, embedder, "b1", "a.txt", []) == 0
    assert not embedder.loaded
    assert fake_model.calls == []


def test_delete_document_chunks_scenario(store, embedder):
    """doc1 (2 chunks) and doc2 (3 chunks); deleting doc1 leaves doc2's 3."""
    store.init("b1")
    embed_and_store(store, embedder, "b1", "doc1.txt", ["doc one part a", "doc one part b"])
    embed_and_store(store, embedder, "b1", "doc2.txt", ["second a", "second b", "second c"])

    assert delete_document_chunks(store, "b1", "doc1.txt") == 2

    records = store.load("b1")
    assert len(records) == 3
    assert {record.filename for record in records} == {"doc2.txt"}


def test_same_filename_shares_chunks(store, embedder, tmp_path):
    """Chunks are linked to documents by filename only."""
    store.init("b1")
    first = tmp_path / "a"
    second = tmp_path / "b"
    first.mkdir()
    second.mkdir()
    (first / "report.txt").write_text("first upload text", encoding="utf-8")
    (second / "report.txt").write_text("second upload text", encoding="utf-8")

    ingest_file(store, embedder, "b1", first / "report.txt")
    ingest_file(store, embedder, "b1", second / "report.txt")
    assert len(store.load("b1")) == 2

    delete_document_chunks(store, "b1", "report.txt")
    assert store.load("b1") == []


def test_ingested_text_is_searchable(store, embedder, tmp_path):
    bucket = create_bucket(store, "docs")
    (tmp_path / "cats.txt").write_text("cats purr and sleep all day", encoding="utf-8")
    (tmp_path / "cars.txt").write_text("engines need oil changes regularly", encoding="utf-8")
    ingest_file(store, embedder, bucket.id, tmp_path / "cats.txt")
    ingest_file(store, embedder, bucket.id, tmp_path / "cars.txt")

    results = search(store, embedder, bucket.id, "engines need oil changes regularly", 5)

    assert results[0].filename == "cars.txt"
    assert results[0].score > 0.99
