"""Tests for backoffice.config and the composition root."""

import logging
import os
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from backoffice.adapters.outbound.cached_policy_reader import CachedPolicyReader
from backoffice.adapters.outbound.sqlalchemy_models import Base
from backoffice.app import build_detector, build_executor, build_policy_store
from backoffice.config import CONFIG_PATH, configure_logging, load_config
from backoffice.data.db import _resolve_sqlite_url, get_engine, init_db
from domain.models import DetectionPolicy


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)


def test_bundled_config_loads():
    config = load_config(CONFIG_PATH)
    assert config["database"]["url"].startswith("sqlite:///")
    assert config["detection"]["max_workers"] == 1
    assert config["cache"]["policy_ttl"] == 60


def test_missing_sections_get_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("database:\n  url: sqlite:///:memory:\n")
    config = load_config(str(path))
    assert config["database"]["url"] == "sqlite:///:memory:"
    assert config["detection"] == {"max_workers": 1}
    assert config["logging"]["level"] == "INFO"


def test_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("cache:\n  redis_url: ''\n")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/backoffice")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")
    config = load_config(str(path))
    assert config["database"]["url"] == "postgresql://db/backoffice"
    assert config["cache"]["redis_url"] == "redis://cache:6379/1"


def test_configure_logging_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    configure_logging({"logging": {"level": "debug"}})
    assert calls[0]["level"] == logging.DEBUG


def test_in_memory_engine():
    engine = init_db(get_engine("sqlite:///:memory:"))
    assert "orders" in Base.metadata.tables
    assert engine.url.database == ":memory:"


def test_relative_sqlite_path_resolved_under_backoffice():
    url = _resolve_sqlite_url("sqlite:///data/backoffice.db")
    assert url.endswith(os.path.join("backoffice", "data", "backoffice.db"))
    assert os.path.isabs(url[len("sqlite:///"):])


def test_absolute_and_server_urls_untouched(tmp_path):
    absolute = f"sqlite:///{tmp_path}/orders.db"
    assert _resolve_sqlite_url(absolute) == absolute
    assert _resolve_sqlite_url("postgresql://db/backoffice") == "postgresql://db/backoffice"


class TestComposition:
    @pytest.fixture
    def session(self):
        engine = create_engine("sqlite:///:memory:")
        Base.metadata.create_all(engine)
        with Session(engine) as s:
            yield s

    def test_executor_only_for_several_workers(self):
        assert build_executor({"detection": {"max_workers": 1}}) is None
        executor = build_executor({"detection": {"max_workers": 4}})
        try:
            assert executor._max_workers == 4
        finally:
            executor.shutdown()

    def test_no_redis_reads_straight_from_db(self, session):
        detector = build_detector({"cache": {"redis_url": ""}}, session)
        assert not isinstance(detector._policy_reader, CachedPolicyReader)

    def test_redis_client_enables_policy_cache(self, session):
        detector = build_detector({"cache": {"policy_ttl": 15}}, session,
                                  redis_client=MagicMock())
        assert isinstance(detector._policy_reader, CachedPolicyReader)
        assert detector._policy_reader._ttl == 15

    def test_store_without_redis_is_the_reader(self, session):
        store, reader = build_policy_store({"cache": {"redis_url": ""}}, session)
        assert store is reader

    def test_saving_through_store_drops_cached_policy(self, session):
        client = MagicMock()
        client.get.return_value = None
        client.scan_iter.return_value = [b"dupcheck:policy:seller1:"]
        store, reader = build_policy_store({}, session, redis_client=client)

        store.save_policy("seller1", DetectionPolicy(is_enabled=True))

        client.scan_iter.assert_called_once_with("dupcheck:policy:seller1:*")
        client.delete.assert_called_once_with(b"dupcheck:policy:seller1:")
        assert reader.get_policy("seller1").is_enabled is True

    def test_detector_uses_given_reader(self, session):
        store, reader = build_policy_store({}, session, redis_client=MagicMock())
        assert build_detector({}, session, policy_reader=reader)._policy_reader is reader
