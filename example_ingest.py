#!/usr/bin/env python3
"""Example: Upload a directory of documents into a new bucket."""

import logging
import os
import sys

from kb_retriever import EngineConfig, KnowledgeBaseError, KnowledgeEngine
from kb_retriever.parser import EXTENSION_TYPES


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    source_dir = os.getenv("SOURCE_DIR", "./docs")
    bucket_name = os.getenv("BUCKET_NAME", os.path.basename(os.path.abspath(source_dir)))

    if not os.path.isdir(source_dir):
        print(f"Error: Source directory not found: {source_dir}")
        print("Set SOURCE_DIR environment variable or create ./docs directory")
        sys.exit(1)

    config = EngineConfig.from_env()

    print("=" * 60)
    print("Knowledge Base Ingestion")
    print("=" * 60)
    print(f"Source directory: {source_dir}")
    print(f"Data directory:   {config.data_dir}")
    print(f"Embedding model:  {config.model_name}")
    print(f"Chunk size:       {config.chunk_size}")
    print(f"Chunk overlap:    {config.chunk_overlap}")
    print("=" * 60)
    print()

    failed = []
    with KnowledgeEngine(config) as engine:
        bucket = engine.create_bucket(bucket_name, f"Documents from {source_dir}")

        for name in sorted(os.listdir(source_dir)):
            path = os.path.join(source_dir, name)
            ext = os.path.splitext(name)[1].lstrip(".").lower()
            if not os.path.isfile(path) or ext not in EXTENSION_TYPES:
                continue
            try:
                bucket_file = engine.ingest_file(bucket.id, path)
            except KnowledgeBaseError as e:
                failed.append((name, str(e)))
                print(f"[WARN] {name}: {e}", file=sys.stderr)
                continue
            bucket.file_count += 1
            print(f"  + {bucket_file.filename}: {bucket_file.chunk_count} chunks")

        total_chunks = len(engine.load(bucket.id))

    print()
    print("=" * 60)
    print(f"Bucket id:     {bucket.id}")
    print(f"Documents:     {bucket.file_count}")
    print(f"Chunk count:   {total_chunks}")
    print(f"Failed files:  {len(failed)}")
    print("=" * 60)


if __name__ == "__main__":
    main()
