"""Unit tests for the metagraph-ingest command."""

from __future__ import annotations

import json

import pytest

from metagraph.cli import ingest as ingest_cli
from metagraph.settings import Settings


def test_cli_normalizes_user_document(tmp_path, capsys):
    document = {
        "name": "Alice",
        "credentials": [
            {
                "issuer": "0xA",
                "signature1": "s1",
                "signature2": "s2",
                "credential": {
                    "author": "0xB",
                    "platform": "github",
                    "description": "verified dev",
                    "issueTime": 1000,
                    "expiryTime": 2000,
                    "userAddress": "0xC",
                    "claims": [],
                },
            }
        ],
    }
    path = tmp_path / "profile.json"
    path.write_text(json.dumps(document), encoding="utf-8")

    exit_code = ingest_cli.main(
        [str(path), "--category", "user", "--document-id", "Qm123", "--subject-id", "7", "--memory"]
    )

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary == {
        "document_id": "Qm123",
        "category": "user",
        "status": "normalized",
        "credentials": ["cred-Qm123-0xB-github"],
    }


def test_cli_reports_rejected_document(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_bytes(b"{broken")

    exit_code = ingest_cli.main(
        [str(path), "--category", "service", "--document-id", "QmBad", "--subject-id", "1", "--memory"]
    )

    assert exit_code == 1
    assert json.loads(capsys.readouterr().out)["status"] == "rejected"


def test_cli_rejects_unknown_category(tmp_path):
    path = tmp_path / "doc.json"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        ingest_cli.main([str(path), "--category", "invoice", "--document-id", "Qm", "--subject-id", "1"])
    assert excinfo.value.code == 2


def test_cli_missing_file_is_a_usage_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        ingest_cli.main(
            [str(tmp_path / "nope.json"), "--category", "user", "--document-id", "Qm", "--subject-id", "1", "--memory"]
        )
    assert excinfo.value.code == 2
    assert "Document not found" in capsys.readouterr().err


def test_cli_memory_flag_leaves_sqlite_untouched(tmp_path, monkeypatch, capsys):
    db_path = tmp_path / "graph.db"
    monkeypatch.setattr(ingest_cli, "get_settings", lambda: Settings(storage={"sqlite_path": db_path}))
    path = tmp_path / "review.json"
    path.write_text('{"content": "great work"}', encoding="utf-8")

    exit_code = ingest_cli.main(
        [str(path), "--category", "review", "--document-id", "QmReview", "--subject-id", "4", "--memory"]
    )

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["status"] == "normalized"
    assert not db_path.exists()
