#!/usr/bin/env python3
"""Example: Query a bucket interactively."""

import logging
import os
import sys

from kb_retriever import EngineConfig, KnowledgeBaseError, KnowledgeEngine


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    bucket_id = os.getenv("BUCKET_ID")
    if not bucket_id:
        print("Error: set BUCKET_ID to the bucket printed by example_ingest.py")
        sys.exit(1)

    config = EngineConfig.from_env()

    with KnowledgeEngine(config) as engine:
        if not engine.store.exists(bucket_id):
            print(f"Error: Bucket store not found: {bucket_id}")
            sys.exit(1)

        records = engine.load(bucket_id)
        filenames = sorted({record.filename for record in records})

        print("=" * 60)
        print("Knowledge Base Query Example")
        print("=" * 60)
        print(f"Bucket:      {bucket_id}")
        print(f"Documents:   {len(filenames)}")
        print(f"Chunks:      {len(records)}")
        print("Enter queries (or 'quit' to exit)")
        print("=" * 60)
        print()

        while True:
            query = input("Query: ").strip()
            if not query or query.lower() in ("quit", "exit", "q"):
                break

            print()
            try:
                results = engine.search(bucket_id, query, top_k=config.top_k)
            except KnowledgeBaseError as e:
                print(f"Error: {e}", file=sys.stderr)
                print()
                continue

            if not results:
                print("No relevant chunks found.")
                print()
                continue

            for rank, hit in enumerate(results, start=1):
                excerpt = hit.content
                if len(excerpt) > 150:
                    excerpt = excerpt[:150].rstrip() + "..."
                print(f"[{rank}] Score: {hit.score:.4f}")
                print(f"    File:  {hit.filename}")
                print(f"    Text:  {excerpt}")
                print()

    print("Goodbye!")


if __name__ == "__main__":
    main()
