"""Category dispatch for metadata documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from metagraph.normalization.documents import (
    NORMALIZERS,
    DocumentCategory,
    DocumentContext,
    NormalizationOptions,
)
from metagraph.normalization.schema import Entity, UserDescription
from metagraph.observability import Observability, get_observability
from metagraph.settings import Settings, get_settings
from metagraph.store.entity_store import EntityStore
from metagraph.store.factories import build_entity_store

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class NormalizationResult:
    """Outcome of processing one document."""

    category: DocumentCategory
    document_id: str
    description: Entity | None

    @property
    def accepted(self) -> bool:
        return self.description is not None

    @property
    def credential_ids(self) -> List[str]:
        if isinstance(self.description, UserDescription) and self.description.credentials:
            return list(self.description.credentials)
        return []


class MetadataPipeline:
    """Route documents to the normalizer for their category and report outcomes."""

    def __init__(
        self,
        store: EntityStore | None = None,
        *,
        settings: Settings | None = None,
        options: NormalizationOptions | None = None,
        observability: Observability | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.store = store if store is not None else build_entity_store(self.settings)
        self.options = options if options is not None else NormalizationOptions.from_settings(self.settings)
        if observability is None:
            observability = get_observability(component="normalization", settings=self.settings)
        self.observability = observability

    def process(
        self,
        category: DocumentCategory | str,
        content: bytes | str,
        context: DocumentContext,
    ) -> NormalizationResult:
        """Normalize ``content`` as a document of ``category``.

        Raises:
            ValueError: If ``category`` does not name a known document category.
        """

        resolved = DocumentCategory(category)
        normalizer = NORMALIZERS[resolved]
        LOGGER.debug("Dispatching document_id=%s to %s normalizer", context.document_id, resolved.value)
        description = normalizer(content, context, self.store, self.options)
        result = NormalizationResult(category=resolved, document_id=context.document_id, description=description)

        status = "normalized" if result.accepted else "rejected"
        self.observability.emit_event(
            f"metadata.{status}",
            category=resolved.value,
            document_id=context.document_id,
            credentials=len(result.credential_ids),
        )
        self.observability.increment("metadata.documents", tags={"category": resolved.value, "status": status})
        return result


__all__ = ["MetadataPipeline", "NormalizationResult"]
