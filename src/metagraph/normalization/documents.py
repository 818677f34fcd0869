"""Document normalizers, one per metadata category.

Each normalizer takes the raw bytes of a content-addressed JSON document plus
the caller's :class:`DocumentContext`, and writes one description entity
whose id is the document id. Optional fields are copied through the typed
accessors in :mod:`metagraph.normalization.fields`, so a missing or mistyped
field simply stays unset.

The only call-level failure is a document that does not decode to a JSON
object: one warning is logged and nothing is written.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict

from metagraph.normalization.credentials import IdStrategy, build_credential_list
from metagraph.normalization.fields import get_array, get_bool, get_int64, get_object, get_string, lowered
from metagraph.normalization.keywords import create_keyword_entities
from metagraph.normalization.schema import (
    Entity,
    EvidenceDescription,
    PlatformDescription,
    ProposalDescription,
    ReviewDescription,
    ServiceDescription,
    UserDescription,
    UserWeb3mailPreferences,
)
from metagraph.settings import Settings
from metagraph.store.entity_store import EntityStore

LOGGER = logging.getLogger(__name__)


class DocumentCategory(str, Enum):
    """Kinds of metadata documents, each handled by its own normalizer."""

    SERVICE = "service"
    PROPOSAL = "proposal"
    REVIEW = "review"
    USER = "user"
    PLATFORM = "platform"
    EVIDENCE = "evidence"


@dataclass(frozen=True, slots=True)
class DocumentContext:
    """Caller-supplied correlation data for one document.

    Attributes:
        document_id: Content identifier of the document; becomes the description id.
        subject_id: Id of the service/proposal/review/user/platform/evidence described.
        source: Label of where the bytes came from, used in diagnostics.
    """

    document_id: str
    subject_id: str | int
    source: str | None = None


@dataclass(frozen=True, slots=True)
class NormalizationOptions:
    """Behaviour switches resolved from :class:`~metagraph.settings.Settings`."""

    tokenize_keywords: bool = False
    credential_id_strategy: IdStrategy = "author_platform"

    @classmethod
    def from_settings(cls, settings: Settings) -> "NormalizationOptions":
        return cls(
            tokenize_keywords=settings.ingestion.tokenize_keywords,
            credential_id_strategy=settings.ingestion.credential_id_strategy,
        )


DEFAULT_OPTIONS = NormalizationOptions()


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {token!r}")


def decode_document(content: bytes | str) -> Dict[str, Any] | None:
    """Decode ``content`` into a JSON object, or return ``None``.

    Invalid UTF, invalid JSON, ``NaN``/``Infinity`` literals and non-object
    top-level values all count as decode failures.
    """

    try:
        decoded = json.loads(content, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return None
    return decoded if isinstance(decoded, dict) else None


def _decode_or_warn(content: bytes | str, context: DocumentContext) -> Dict[str, Any] | None:
    document = decode_document(content)
    if document is None:
        LOGGER.warning("Error parsing json: %s", context.source or context.document_id)
    return document


def normalize_service(
    content: bytes | str,
    context: DocumentContext,
    store: EntityStore,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> ServiceDescription | None:
    """Write a :class:`ServiceDescription` for a service metadata document."""

    document = _decode_or_warn(content, context)
    if document is None:
        return None

    description = ServiceDescription(id=context.document_id, service=str(context.subject_id))
    description.title = get_string(document, "title")
    description.about = get_string(document, "about")
    description.start_date = get_int64(document, "startDate")
    description.expected_end_date = get_int64(document, "expectedEndDate")
    description.keywords_raw = lowered(get_string(document, "keywords"))
    description.rate_token = get_string(document, "rateToken")
    description.rate_amount = get_string(document, "rateAmount")
    description.video_url = get_string(document, "video_url")

    if options.tokenize_keywords and description.keywords_raw is not None:
        description.keywords = create_keyword_entities(description.keywords_raw, store)

    store.save(description)
    return description


def normalize_proposal(
    content: bytes | str,
    context: DocumentContext,
    store: EntityStore,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> ProposalDescription | None:
    document = _decode_or_warn(content, context)
    if document is None:
        return None

    description = ProposalDescription(id=context.document_id, proposal=str(context.subject_id))
    description.start_date = get_int64(document, "startDate")
    description.about = get_string(document, "about")
    description.expected_hours = get_int64(document, "expectedHours")
    description.video_url = get_string(document, "video_url")

    store.save(description)
    return description


def normalize_review(
    content: bytes | str,
    context: DocumentContext,
    store: EntityStore,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> ReviewDescription | None:
    # Reviews cannot be edited, so there is never an older description to clear.
    document = _decode_or_warn(content, context)
    if document is None:
        return None

    description = ReviewDescription(id=context.document_id, review=str(context.subject_id))
    description.content = get_string(document, "content")

    store.save(description)
    return description


def build_web3mail_preferences(preferences: Dict[str, Any], document_id: str) -> UserWeb3mailPreferences:
    """Map a ``web3mailPreferences`` object; absent or non-boolean flags take their defaults."""

    return UserWeb3mailPreferences(
        id=document_id,
        active_on_new_service=get_bool(preferences, "activeOnNewService", False),
        active_on_new_proposal=get_bool(preferences, "activeOnNewProposal", True),
        active_on_proposal_validated=get_bool(preferences, "activeOnProposalValidated", True),
        active_on_fund_release=get_bool(preferences, "activeOnFundRelease", True),
        active_on_review=get_bool(preferences, "activeOnReview", True),
        active_on_platform_marketing=get_bool(preferences, "activeOnPlatformMarketing", False),
        active_on_protocol_marketing=get_bool(preferences, "activeOnProtocolMarketing", False),
    )


def normalize_user(
    content: bytes | str,
    context: DocumentContext,
    store: EntityStore,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> UserDescription | None:
    """Write a :class:`UserDescription` and the credential graph it references.

    Credentials, claims and web3mail preferences are persisted before the
    description so it never references an id that was not written yet.
    """

    document = _decode_or_warn(content, context)
    if document is None:
        return None

    document_id = context.document_id
    description = UserDescription(id=document_id, user=str(context.subject_id))
    description.title = get_string(document, "title")
    description.about = get_string(document, "about")
    description.skills_raw = lowered(get_string(document, "skills"))

    credential_items = get_array(document, "credentials")
    if credential_items is not None:
        description.credentials = build_credential_list(
            credential_items,
            document_id,
            store,
            id_strategy=options.credential_id_strategy,
        )

    description.timezone = get_int64(document, "timezone")
    description.headline = get_string(document, "headline")
    description.country = get_string(document, "country")
    description.role = get_string(document, "role")
    description.name = get_string(document, "name")
    description.video_url = get_string(document, "video_url")
    description.image_url = get_string(document, "image_url")

    preferences_obj = get_object(document, "web3mailPreferences")
    if preferences_obj is not None:
        store.save(build_web3mail_preferences(preferences_obj, document_id))
        description.web3mail_preferences = document_id

    if options.tokenize_keywords and description.skills_raw is not None:
        description.skills = create_keyword_entities(description.skills_raw, store)

    store.save(description)
    return description


def normalize_platform(
    content: bytes | str,
    context: DocumentContext,
    store: EntityStore,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> PlatformDescription | None:
    document = _decode_or_warn(content, context)
    if document is None:
        return None

    description = PlatformDescription(id=context.document_id, platform=str(context.subject_id))
    description.about = get_string(document, "about")
    description.website = get_string(document, "website")
    description.video_url = get_string(document, "video_url")
    description.image_url = get_string(document, "image_url")

    store.save(description)
    return description


def normalize_evidence(
    content: bytes | str,
    context: DocumentContext,
    store: EntityStore,
    options: NormalizationOptions = DEFAULT_OPTIONS,
) -> EvidenceDescription | None:
    document = _decode_or_warn(content, context)
    if document is None:
        return None

    description = EvidenceDescription(id=context.document_id, evidence=str(context.subject_id))
    description.file_uri = get_string(document, "fileUri")
    description.file_hash = get_string(document, "fileHash")
    description.file_type_extension = get_string(document, "fileTypeExtension")
    description.name = get_string(document, "name")
    description.description = get_string(document, "description")

    store.save(description)
    return description


Normalizer = Callable[[bytes | str, DocumentContext, EntityStore, NormalizationOptions], Entity | None]

NORMALIZERS: Dict[DocumentCategory, Normalizer] = {
    DocumentCategory.SERVICE: normalize_service,
    DocumentCategory.PROPOSAL: normalize_proposal,
    DocumentCategory.REVIEW: normalize_review,
    DocumentCategory.USER: normalize_user,
    DocumentCategory.PLATFORM: normalize_platform,
    DocumentCategory.EVIDENCE: normalize_evidence,
}


__all__ = [
    "DocumentCategory",
    "DocumentContext",
    "NormalizationOptions",
    "DEFAULT_OPTIONS",
    "NORMALIZERS",
    "decode_document",
    "build_web3mail_preferences",
    "normalize_service",
    "normalize_proposal",
    "normalize_review",
    "normalize_user",
    "normalize_platform",
    "normalize_evidence",
]
