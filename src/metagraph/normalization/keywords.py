"""Keyword tokenization for free-text keyword and skill fields.

Disabled by default: descriptions keep the lower-cased raw text only. When
enabled, comma separated text is split into :class:`Keyword` entities that are
deduplicated within the document and created only if not already stored.
"""

from __future__ import annotations

from typing import List

from metagraph.normalization.schema import Keyword
from metagraph.store.entity_store import EntityStore


def tokenize_keywords(raw: str) -> List[str]:
    """Split ``raw`` on commas into normalized, deduplicated tokens.

    Args:
        raw: Comma separated keyword text, e.g. ``"Solidity, react,solidity"``.

    Returns:
        Lower-cased, trimmed tokens in first-seen order, e.g.
        ``["solidity", "react"]``. Empty tokens are dropped.
    """

    seen = set()
    tokens: List[str] = []
    for chunk in raw.split(","):
        token = chunk.strip().lower()
        if not token or token in seen:
            continue
        seen.add(token)
        tokens.append(token)
    return tokens


def get_or_create_keyword(store: EntityStore, text: str) -> Keyword:
    existing = store.get(Keyword, text)
    if existing is not None:
        return existing
    keyword = Keyword(id=text, text=text)
    store.save(keyword)
    return keyword


def create_keyword_entities(raw: str, store: EntityStore) -> List[str] | None:
    """Upsert one :class:`Keyword` per token of ``raw`` and return their ids.

    Returns ``None`` rather than an empty list when ``raw`` holds no tokens.
    """

    tokens = tokenize_keywords(raw)
    if not tokens:
        return None
    return [get_or_create_keyword(store, token).id for token in tokens]


__all__ = ["tokenize_keywords", "get_or_create_keyword", "create_keyword_entities"]
