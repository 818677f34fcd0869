"""Normalize a single metadata document from disk into the entity store.

Usage:
    metagraph-ingest --category user --document-id Qm123 --subject-id 7 profile.json

Re-running with the same file and ids overwrites the same entities with the
same content.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from metagraph.normalization.documents import DocumentCategory, DocumentContext, NormalizationOptions
from metagraph.normalization.pipeline import MetadataPipeline
from metagraph.settings import Settings, get_settings
from metagraph.store.entity_store import InMemoryEntityStore

LOGGER = logging.getLogger("metagraph.cli.ingest")


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Normalize a metadata document into the metagraph entity store")
    p.add_argument("path", type=Path, help="Path to the JSON document")
    p.add_argument(
        "--category",
        required=True,
        choices=[category.value for category in DocumentCategory],
        help="Document category",
    )
    p.add_argument("--document-id", required=True, help="Content identifier of the document")
    p.add_argument("--subject-id", required=True, help="Id of the entity the document describes")
    p.add_argument("--memory", action="store_true", help="Use a throwaway in-memory store")
    p.add_argument("--tokenize-keywords", action="store_true", help="Create Keyword entities from keyword text")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    _configure_logging(settings)

    if not args.path.exists():
        parser.error(f"Document not found: {args.path}")
    content = args.path.read_bytes()

    options = NormalizationOptions.from_settings(settings)
    if args.tokenize_keywords:
        options = replace(options, tokenize_keywords=True)
    store = InMemoryEntityStore() if args.memory else None

    pipeline = MetadataPipeline(store, settings=settings, options=options)
    context = DocumentContext(document_id=args.document_id, subject_id=args.subject_id, source=str(args.path))
    result = pipeline.process(args.category, content, context)
    LOGGER.info("Processed %s document_id=%s accepted=%s", result.category.value, result.document_id, result.accepted)

    summary = {
        "document_id": result.document_id,
        "category": result.category.value,
        "status": "normalized" if result.accepted else "rejected",
        "credentials": result.credential_ids,
    }
    print(json.dumps(summary, indent=2))
    return 0 if result.accepted else 1


if __name__ == "__main__":
    sys.exit(main())
