"""SQLAlchemy metadata and engine helpers for the entity-graph tables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.dialects import postgresql
from sqlalchemy.engine import URL
from sqlalchemy.orm import sessionmaker

from metagraph.settings import Settings, get_settings

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")
ID_TYPE = sa.Text()

METADATA = sa.MetaData()

service_descriptions = sa.Table(
    "service_descriptions",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("service", sa.Text(), nullable=False),
    sa.Column("title", sa.Text(), nullable=True),
    sa.Column("about", sa.Text(), nullable=True),
    sa.Column("start_date", sa.BigInteger(), nullable=True),
    sa.Column("expected_end_date", sa.BigInteger(), nullable=True),
    sa.Column("keywords_raw", sa.Text(), nullable=True),
    sa.Column("keywords", JSON_TYPE, nullable=True),
    sa.Column("rate_token", sa.Text(), nullable=True),
    sa.Column("rate_amount", sa.Text(), nullable=True),
    sa.Column("video_url", sa.Text(), nullable=True),
)
sa.Index("idx_service_descriptions_service", service_descriptions.c.service)

proposal_descriptions = sa.Table(
    "proposal_descriptions",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("proposal", sa.Text(), nullable=False),
    sa.Column("start_date", sa.BigInteger(), nullable=True),
    sa.Column("about", sa.Text(), nullable=True),
    sa.Column("expected_hours", sa.BigInteger(), nullable=True),
    sa.Column("video_url", sa.Text(), nullable=True),
)
sa.Index("idx_proposal_descriptions_proposal", proposal_descriptions.c.proposal)

review_descriptions = sa.Table(
    "review_descriptions",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("review", sa.Text(), nullable=False),
    sa.Column("content", sa.Text(), nullable=True),
)

user_descriptions = sa.Table(
    "user_descriptions",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("user", sa.Text(), nullable=False),
    sa.Column("title", sa.Text(), nullable=True),
    sa.Column("about", sa.Text(), nullable=True),
    sa.Column("skills_raw", sa.Text(), nullable=True),
    sa.Column("skills", JSON_TYPE, nullable=True),
    sa.Column("credentials", JSON_TYPE, nullable=True),
    sa.Column("timezone", sa.BigInteger(), nullable=True),
    sa.Column("headline", sa.Text(), nullable=True),
    sa.Column("country", sa.Text(), nullable=True),
    sa.Column("role", sa.Text(), nullable=True),
    sa.Column("name", sa.Text(), nullable=True),
    sa.Column("video_url", sa.Text(), nullable=True),
    sa.Column("image_url", sa.Text(), nullable=True),
    sa.Column(
        "web3mail_preferences",
        ID_TYPE,
        sa.ForeignKey("user_web3mail_preferences.id", ondelete="SET NULL"),
        nullable=True,
    ),
)
sa.Index("idx_user_descriptions_user", user_descriptions.c.user)

platform_descriptions = sa.Table(
    "platform_descriptions",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("platform", sa.Text(), nullable=False),
    sa.Column("about", sa.Text(), nullable=True),
    sa.Column("website", sa.Text(), nullable=True),
    sa.Column("video_url", sa.Text(), nullable=True),
    sa.Column("image_url", sa.Text(), nullable=True),
)

evidence_descriptions = sa.Table(
    "evidence_descriptions",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("evidence", sa.Text(), nullable=False),
    sa.Column("file_uri", sa.Text(), nullable=True),
    sa.Column("file_hash", sa.Text(), nullable=True),
    sa.Column("file_type_extension", sa.Text(), nullable=True),
    sa.Column("name", sa.Text(), nullable=True),
    sa.Column("description", sa.Text(), nullable=True),
)

claims_encrypted = sa.Table(
    "claims_encrypted",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("cipher_text", sa.Text(), nullable=False),
    sa.Column("access_control_condition", sa.Text(), nullable=False),
)

claims = sa.Table(
    "claims",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("platform", sa.Text(), nullable=False),
    sa.Column("criteria", sa.Text(), nullable=False),
    sa.Column("condition", sa.Text(), nullable=False),
    sa.Column("value", sa.Text(), nullable=False),
)

credentials = sa.Table(
    "credentials",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("author", sa.Text(), nullable=False),
    sa.Column("platform", sa.Text(), nullable=False),
    sa.Column("description", sa.Text(), nullable=False),
    sa.Column("issue_time", sa.Integer(), nullable=False),
    sa.Column("expiry_time", sa.Integer(), nullable=False),
    sa.Column("user_address", sa.Text(), nullable=False),
    sa.Column(
        "claims_encrypted",
        ID_TYPE,
        sa.ForeignKey("claims_encrypted.id", ondelete="SET NULL"),
        nullable=True,
    ),
    sa.Column("claims", JSON_TYPE, nullable=True),
)
sa.Index("idx_credentials_author_platform", credentials.c.author, credentials.c.platform)

credential_wrappers = sa.Table(
    "credential_wrappers",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("credential", ID_TYPE, sa.ForeignKey("credentials.id", ondelete="CASCADE"), nullable=False),
    sa.Column("issuer", sa.Text(), nullable=False),
    sa.Column("signature1", sa.Text(), nullable=False),
    sa.Column("signature2", sa.Text(), nullable=False),
)
sa.Index("idx_credential_wrappers_issuer", credential_wrappers.c.issuer)

user_web3mail_preferences = sa.Table(
    "user_web3mail_preferences",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("active_on_new_service", sa.Boolean(), nullable=False),
    sa.Column("active_on_new_proposal", sa.Boolean(), nullable=False),
    sa.Column("active_on_proposal_validated", sa.Boolean(), nullable=False),
    sa.Column("active_on_fund_release", sa.Boolean(), nullable=False),
    sa.Column("active_on_review", sa.Boolean(), nullable=False),
    sa.Column("active_on_platform_marketing", sa.Boolean(), nullable=False),
    sa.Column("active_on_protocol_marketing", sa.Boolean(), nullable=False),
)

keywords = sa.Table(
    "keywords",
    METADATA,
    sa.Column("id", ID_TYPE, primary_key=True),
    sa.Column("text", sa.Text(), nullable=False),
)

TABLES: Dict[str, sa.Table] = dict(METADATA.tables)


def _resolve_database_url(settings: Settings | None = None) -> str:
    """Return the SQLAlchemy URL considering overrides and configured backend."""

    url_override = os.getenv("METAGRAPH_DATABASE_URL")
    if url_override:
        return url_override

    resolved = settings or get_settings()
    backend = resolved.storage.backend
    if backend == "sqlite":
        sqlite_path = Path(resolved.storage.sqlite_path)
        sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        return URL.create("sqlite", database=sqlite_path.as_posix()).render_as_string(hide_password=False)

    raise NotImplementedError(f"Unsupported storage backend '{backend}' for SQL engine creation")


def build_engine(*, echo: bool | None = None, settings: Settings | None = None) -> Engine:
    """Instantiate a SQLAlchemy engine aligned with project settings."""

    resolved = settings or get_settings()
    url = _resolve_database_url(resolved)
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite:///"):
        connect_args["check_same_thread"] = False
    if echo is None:
        echo = resolved.storage.echo_sql
    return sa.create_engine(url, echo=echo, future=True, pool_pre_ping=True, connect_args=connect_args)


def session_factory(*, settings: Settings | None = None) -> sessionmaker:
    """Return a configured sessionmaker bound to the active engine."""

    engine = build_engine(settings=settings)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
