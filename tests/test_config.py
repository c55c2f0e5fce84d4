from __future__ import annotations

import pytest

from cdr_ingest.config import DEFAULT_DATABASE_URL, AppConfig, parse_args


def test_defaults(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    config = parse_args([])
    assert config == AppConfig()
    assert config.batch_size == 500
    assert config.database_url == DEFAULT_DATABASE_URL


def test_database_url_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./cdr.db")
    assert parse_args([]).database_url == "sqlite:///./cdr.db"
    assert parse_args(["--database-url", "sqlite://"]).database_url == "sqlite://"


def test_batch_size_override():
    assert parse_args(["--batch-size", "50"]).batch_size == 50


def test_batch_size_must_be_positive():
    with pytest.raises(SystemExit):
        parse_args(["--batch-size", "0"])
