"""Unit tests for credential and claim extraction."""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from metagraph.normalization.credentials import (
    build_credential_list,
    derive_credential_id,
    extract_claim,
    extract_claims_encrypted,
    extract_credential,
)
from metagraph.normalization.schema import Claim, ClaimsEncrypted, Credential, CredentialWrapper
from metagraph.store.entity_store import InMemoryEntityStore

DOC_ID = "Qm123"

REQUIRED_WRAPPER_FIELDS = ("issuer", "signature1", "signature2")
REQUIRED_CREDENTIAL_FIELDS = ("author", "platform", "description", "issueTime", "expiryTime", "userAddress")


def _claim(criteria: str = "stars", **overrides: Any) -> Dict[str, Any]:
    claim = {"platform": "github", "criteria": criteria, "condition": "gt", "value": "100"}
    claim.update(overrides)
    return claim


def _wrapper(author: str = "0xB", platform: str = "github", **credential_overrides: Any) -> Dict[str, Any]:
    credential: Dict[str, Any] = {
        "author": author,
        "platform": platform,
        "description": "verified dev",
        "issueTime": 1000,
        "expiryTime": 2000,
        "userAddress": "0xC",
        "claims": [_claim()],
    }
    credential.update(credential_overrides)
    return {"issuer": "0xA", "signature1": "s1", "signature2": "s2", "credential": credential}


def test_extract_claim_requires_every_string_field():
    claim = extract_claim(_claim(), "cred-x")
    assert claim == Claim(id="cred-x-stars", platform="github", criteria="stars", condition="gt", value="100")

    assert extract_claim(_claim(value=100), "cred-x") is None
    missing_value = _claim()
    del missing_value["value"]
    assert extract_claim(missing_value, "cred-x") is None
    assert extract_claim("not-an-object", "cred-x") is None


def test_extract_claims_encrypted_is_all_or_nothing():
    payload = {"cipherText": "abc", "accessControlCondition": "acc"}
    assert extract_claims_encrypted(payload, "cred-x") == ClaimsEncrypted(
        id="cred-x", cipher_text="abc", access_control_condition="acc"
    )
    assert extract_claims_encrypted({"cipherText": "abc"}, "cred-x") is None
    assert extract_claims_encrypted({"cipherText": "abc", "accessControlCondition": None}, "cred-x") is None


def test_extract_credential_builds_linked_graph():
    graph = extract_credential(_wrapper(), DOC_ID)

    assert graph is not None
    assert graph.id == "cred-Qm123-0xB-github"
    assert graph.credential.claims == ["cred-Qm123-0xB-github-stars"]
    assert graph.credential.claims_encrypted is None
    assert graph.wrapper == CredentialWrapper(
        id="cred-Qm123-0xB-github",
        credential="cred-Qm123-0xB-github",
        issuer="0xA",
        signature1="s1",
        signature2="s2",
    )


@pytest.mark.parametrize("field_name", REQUIRED_WRAPPER_FIELDS)
def test_missing_wrapper_field_discards_credential(field_name):
    item = _wrapper()
    del item[field_name]
    assert extract_credential(item, DOC_ID) is None


@pytest.mark.parametrize("field_name", REQUIRED_CREDENTIAL_FIELDS)
def test_missing_credential_field_discards_credential(field_name):
    item = _wrapper()
    del item["credential"][field_name]
    assert extract_credential(item, DOC_ID) is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"issueTime": "1000"},
        {"expiryTime": 2000.5},
        {"issueTime": 2**31},
        {"expiryTime": True},
        {"author": 7},
    ],
)
def test_mistyped_credential_field_discards_credential(overrides):
    assert extract_credential(_wrapper(**overrides), DOC_ID) is None


def test_credential_without_any_claim_source_is_discarded():
    item = _wrapper()
    del item["credential"]["claims"]
    assert extract_credential(item, DOC_ID) is None

    item["credential"]["claims"] = "not-an-array"
    assert extract_credential(item, DOC_ID) is None


def test_missing_nested_credential_object_is_skipped():
    assert extract_credential({"issuer": "0xA", "signature1": "s1", "signature2": "s2"}, DOC_ID) is None
    assert extract_credential([1, 2, 3], DOC_ID) is None


def test_malformed_claim_is_dropped_but_credential_survives():
    bad_claim = _claim("forks")
    del bad_claim["value"]
    graph = extract_credential(_wrapper(claims=[_claim("stars"), bad_claim, _claim("followers")]), DOC_ID)

    assert graph is not None
    assert graph.credential.claims == ["cred-Qm123-0xB-github-stars", "cred-Qm123-0xB-github-followers"]
    assert [claim.criteria for claim in graph.claims] == ["stars", "followers"]


def test_empty_claims_array_still_materializes_credential():
    graph = extract_credential(_wrapper(claims=[]), DOC_ID)
    assert graph is not None
    assert graph.credential.claims == []

    only_bad = extract_credential(_wrapper(claims=[{"criteria": "x"}]), DOC_ID)
    assert only_bad is not None
    assert only_bad.credential.claims == []


def test_encrypted_claims_alone_are_enough():
    item = _wrapper(claimsEncrypted={"cipherText": "c", "accessControlCondition": "a"})
    del item["credential"]["claims"]

    graph = extract_credential(item, DOC_ID)

    assert graph is not None
    assert graph.credential.claims is None
    assert graph.credential.claims_encrypted == graph.id
    assert graph.claims_encrypted == ClaimsEncrypted(id=graph.id, cipher_text="c", access_control_condition="a")


def test_incomplete_encrypted_claims_void_credential_even_with_valid_claims():
    item = _wrapper(claimsEncrypted={"cipherText": "c"})
    assert extract_credential(item, DOC_ID) is None


def test_build_credential_list_skips_failures_and_keeps_order():
    broken = _wrapper(author="0xBAD")
    del broken["signature2"]
    items = [_wrapper(author="0x1"), broken, "garbage", _wrapper(author="0x2")]
    store = InMemoryEntityStore()

    ids = build_credential_list(items, DOC_ID, store)

    assert ids == ["cred-Qm123-0x1-github", "cred-Qm123-0x2-github"]
    assert store.get(Credential, "cred-Qm123-0xBAD-github") is None
    assert store.get(CredentialWrapper, "cred-Qm123-0xBAD-github") is None
    assert store.get(Claim, "cred-Qm123-0xBAD-github-stars") is None


def test_rejected_credential_writes_nothing():
    item = _wrapper(claimsEncrypted={"cipherText": "c"})
    store = InMemoryEntityStore()

    assert build_credential_list([item], DOC_ID, store) == []
    assert store.writes == []


def test_children_are_written_before_credential_and_wrapper():
    item = _wrapper(claimsEncrypted={"cipherText": "c", "accessControlCondition": "a"})
    store = InMemoryEntityStore()

    build_credential_list([item], DOC_ID, store)

    assert [entity_type for entity_type, _ in store.writes] == [
        "claims_encrypted",
        "claims",
        "credentials",
        "credential_wrappers",
    ]


def test_colliding_credentials_overwrite_by_default():
    first = _wrapper(description="first")
    second = _wrapper(description="second")
    store = InMemoryEntityStore()

    ids = build_credential_list([first, second], DOC_ID, store)

    assert ids == ["cred-Qm123-0xB-github", "cred-Qm123-0xB-github"]
    assert store.get(Credential, "cred-Qm123-0xB-github").description == "second"


def test_indexed_strategy_disambiguates_collisions():
    items = [_wrapper(description="first"), _wrapper(description="second")]
    store = InMemoryEntityStore()

    ids = build_credential_list(items, DOC_ID, store, id_strategy="indexed")

    assert ids == ["cred-Qm123-0xB-github-0", "cred-Qm123-0xB-github-1"]
    assert store.get(Claim, "cred-Qm123-0xB-github-1-stars") is not None
    assert derive_credential_id(DOC_ID, "0xB", "github", 3) == "cred-Qm123-0xB-github-3"


def test_extraction_does_not_mutate_input():
    item = _wrapper()
    snapshot = copy.deepcopy(item)
    extract_credential(item, DOC_ID)
    assert item == snapshot
