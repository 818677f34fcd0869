"""Unit tests for keyword tokenization."""

from __future__ import annotations

import pytest

from metagraph.normalization.keywords import create_keyword_entities, get_or_create_keyword, tokenize_keywords
from metagraph.normalization.schema import Keyword
from metagraph.store.entity_store import InMemoryEntityStore


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("solidity,react", ["solidity", "react"]),
        (" Solidity , REACT,solidity ", ["solidity", "react"]),
        ("web3,, ,defi", ["web3", "defi"]),
        (" , ,", []),
    ],
)
def test_tokenize_keywords(raw, expected):
    assert tokenize_keywords(raw) == expected


def test_get_or_create_keyword_does_not_rewrite_existing():
    store = InMemoryEntityStore()

    first = get_or_create_keyword(store, "solidity")
    second = get_or_create_keyword(store, "solidity")

    assert first == second == Keyword(id="solidity", text="solidity")
    assert store.writes == [("keywords", "solidity")]


def test_create_keyword_entities_returns_none_without_tokens():
    store = InMemoryEntityStore()
    assert create_keyword_entities(" , ", store) is None
    assert store.writes == []
