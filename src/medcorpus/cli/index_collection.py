"""CLI entrypoint that normalizes a collection into JSON Lines documents."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace

from dotenv import load_dotenv

from medcorpus.collection.discovery import CollectionKind, DocumentCollection
from medcorpus.index.config import IndexSettings
from medcorpus.index.generator import DocumentGenerator
from medcorpus.index.runner import CollectionIndexer
from medcorpus.index.sink import JsonlDocumentSink

load_dotenv()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Normalize a document collection for an external indexer")
    parser.add_argument(
        "--collection",
        required=True,
        choices=[kind.value for kind in CollectionKind],
        help="Collection format",
    )
    parser.add_argument("--input", required=True, help="Collection root directory or single file")
    parser.add_argument("--output", required=True, help="JSON Lines file receiving normalized documents")
    parser.add_argument("--store-raw", action="store_true", help="Store raw source text")
    parser.add_argument("--store-contents", action="store_true", help="Store main text fields")
    parser.add_argument("--store-docvectors", action="store_true", help="Store term vectors")
    parser.add_argument("--store-positions", action="store_true", help="Index term positions")
    parser.add_argument("--workers", type=int, default=None, help="Segments processed in parallel")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    settings = IndexSettings.from_env()
    settings = replace(
        settings,
        store_raw=settings.store_raw or args.store_raw,
        store_contents=settings.store_contents or args.store_contents,
        store_docvectors=settings.store_docvectors or args.store_docvectors,
        store_positions=settings.store_positions or args.store_positions,
        workers=args.workers if args.workers is not None else settings.workers,
    )
    if settings.workers < 1:
        parser.error("--workers must be >= 1")

    collection = DocumentCollection(
        args.input,
        CollectionKind(args.collection),
        layout=settings.side_file_layout(),
    )
    generator = DocumentGenerator(settings.generator_options())

    with JsonlDocumentSink(args.output) as sink:
        indexer = CollectionIndexer(generator, sink, workers=settings.workers)
        stats = indexer.index_collection(collection)

    print(json.dumps(stats.to_dict(), ensure_ascii=True, indent=2))
    return 0 if stats.errors == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
