"""Credential and claim extraction for user profile documents.

A user profile carries a ``credentials`` array. Each element is a wrapper::

    {
        "issuer": "0xA", "signature1": "...", "signature2": "...",
        "credential": {
            "author": "0xB", "platform": "github", "description": "...",
            "issueTime": 1000, "expiryTime": 2000, "userAddress": "0xC",
            "claims": [{"platform": ..., "criteria": ..., "condition": ..., "value": ...}],
            "claimsEncrypted": {"cipherText": ..., "accessControlCondition": ...}
        }
    }

Validation happens at two granularities. A credential is all-or-nothing: any
missing or mistyped field on the wrapper, the credential or its
``claimsEncrypted`` payload discards the whole element. A claim is dropped on
its own without affecting its siblings or the owning credential.

Extractors return ``None`` for rejected items; nothing is written to the store
until a credential has passed every gate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Literal, Sequence

from metagraph.normalization.fields import as_object, get_array, get_int, get_object, get_string
from metagraph.normalization.schema import Claim, ClaimsEncrypted, Credential, CredentialWrapper, Entity
from metagraph.store.entity_store import EntityStore

IdStrategy = Literal["author_platform", "indexed"]

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass(slots=True)
class CredentialGraph:
    """Entities staged for one credential, in the order they must be written."""

    credential: Credential
    wrapper: CredentialWrapper
    claims_encrypted: ClaimsEncrypted | None = None
    claims: List[Claim] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.credential.id

    def entities(self) -> Iterator[Entity]:
        """Yield children before the credential that references them."""

        if self.claims_encrypted is not None:
            yield self.claims_encrypted
        yield from self.claims
        yield self.credential
        yield self.wrapper


def derive_credential_id(document_id: str, author: str, platform: str, index: int | None = None) -> str:
    """Return ``cred-<document>-<author>-<platform>``, suffixed with ``index`` when given.

    Without an index two credentials by the same author on the same platform in
    one document share an id, and the later one overwrites the earlier.
    """

    credential_id = f"cred-{document_id}-{author}-{platform}"
    if index is not None:
        credential_id = f"{credential_id}-{index}"
    return credential_id


def derive_claim_id(credential_id: str, criteria: str) -> str:
    return f"{credential_id}-{criteria}"


def _get_int32(tree: Any, key: str) -> int | None:
    value = get_int(tree, key)
    if value is None or not INT32_MIN <= value <= INT32_MAX:
        return None
    return value


def extract_claim(item: Any, credential_id: str) -> Claim | None:
    """Materialize one claim, or return ``None`` if any field is missing."""

    claim_obj = as_object(item)
    if claim_obj is None:
        return None
    platform = get_string(claim_obj, "platform")
    criteria = get_string(claim_obj, "criteria")
    condition = get_string(claim_obj, "condition")
    value = get_string(claim_obj, "value")
    if platform is None or criteria is None or condition is None or value is None:
        return None
    return Claim(
        id=derive_claim_id(credential_id, criteria),
        platform=platform,
        criteria=criteria,
        condition=condition,
        value=value,
    )


def extract_claims(items: Iterable[Any], credential_id: str) -> List[Claim]:
    """Keep the well-formed claims of ``items`` in input order."""

    extracted: List[Claim] = []
    for item in items:
        claim = extract_claim(item, credential_id)
        if claim is not None:
            extracted.append(claim)
    return extracted


def extract_claims_encrypted(payload: Any, credential_id: str) -> ClaimsEncrypted | None:
    """Materialize an encrypted-claims payload; ``None`` voids the owning credential."""

    payload_obj = as_object(payload)
    if payload_obj is None:
        return None
    cipher_text = get_string(payload_obj, "cipherText")
    access_control_condition = get_string(payload_obj, "accessControlCondition")
    if cipher_text is None or access_control_condition is None:
        return None
    return ClaimsEncrypted(
        id=credential_id,
        cipher_text=cipher_text,
        access_control_condition=access_control_condition,
    )


def extract_credential(
    item: Any,
    document_id: str,
    *,
    index: int | None = None,
    id_strategy: IdStrategy = "author_platform",
) -> CredentialGraph | None:
    """Validate one element of a ``credentials`` array.

    Args:
        item: Untyped array element, expected to be a credential wrapper object.
        document_id: Id of the document the credential was found in.
        index: Position of ``item`` in the array; only used by the ``indexed`` strategy.
        id_strategy: How the credential id is derived.

    Returns:
        The staged :class:`CredentialGraph`, or ``None`` when the element fails
        any all-or-nothing check.
    """

    wrapper_obj = as_object(item)
    if wrapper_obj is None:
        return None
    credential_obj = get_object(wrapper_obj, "credential")
    if credential_obj is None:
        return None

    issuer = get_string(wrapper_obj, "issuer")
    signature1 = get_string(wrapper_obj, "signature1")
    signature2 = get_string(wrapper_obj, "signature2")
    author = get_string(credential_obj, "author")
    platform = get_string(credential_obj, "platform")
    description = get_string(credential_obj, "description")
    issue_time = _get_int32(credential_obj, "issueTime")
    expiry_time = _get_int32(credential_obj, "expiryTime")
    user_address = get_string(credential_obj, "userAddress")
    claim_items = get_array(credential_obj, "claims")
    claims_encrypted_obj = get_object(credential_obj, "claimsEncrypted")

    if (
        issuer is None
        or signature1 is None
        or signature2 is None
        or author is None
        or platform is None
        or description is None
        or issue_time is None
        or expiry_time is None
        or user_address is None
        or (claim_items is None and claims_encrypted_obj is None)
    ):
        return None

    credential_id = derive_credential_id(
        document_id,
        author,
        platform,
        index if id_strategy == "indexed" else None,
    )

    claims_encrypted = None
    if claims_encrypted_obj is not None:
        claims_encrypted = extract_claims_encrypted(claims_encrypted_obj, credential_id)
        if claims_encrypted is None:
            return None

    claims: List[Claim] = []
    if claim_items is not None:
        claims = extract_claims(claim_items, credential_id)

    credential = Credential(
        id=credential_id,
        author=author,
        platform=platform,
        description=description,
        issue_time=issue_time,
        expiry_time=expiry_time,
        user_address=user_address,
        claims_encrypted=claims_encrypted.id if claims_encrypted is not None else None,
        # An empty but present claims array still yields a list.
        claims=[claim.id for claim in claims] if claim_items is not None else None,
    )
    wrapper = CredentialWrapper(
        id=credential_id,
        credential=credential_id,
        issuer=issuer,
        signature1=signature1,
        signature2=signature2,
    )
    return CredentialGraph(
        credential=credential,
        wrapper=wrapper,
        claims_encrypted=claims_encrypted,
        claims=claims,
    )


def persist_credential(graph: CredentialGraph, store: EntityStore) -> str:
    for entity in graph.entities():
        store.save(entity)
    return graph.id


def build_credential_list(
    items: Sequence[Any],
    document_id: str,
    store: EntityStore,
    *,
    id_strategy: IdStrategy = "author_platform",
) -> List[str]:
    """Persist every valid credential of ``items`` and return their ids in order.

    Rejected elements contribute nothing to the result and write nothing.
    """

    credential_ids: List[str] = []
    for index, item in enumerate(items):
        graph = extract_credential(item, document_id, index=index, id_strategy=id_strategy)
        if graph is None:
            continue
        credential_ids.append(persist_credential(graph, store))
    return credential_ids


__all__ = [
    "CredentialGraph",
    "IdStrategy",
    "derive_credential_id",
    "derive_claim_id",
    "extract_claim",
    "extract_claims",
    "extract_claims_encrypted",
    "extract_credential",
    "persist_credential",
    "build_credential_list",
]
