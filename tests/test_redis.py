from __future__ import annotations

import json
from unittest import mock

import pytest

from townhall.common import redis as store


@pytest.fixture
def client(monkeypatch):
    client = mock.MagicMock()
    monkeypatch.setattr(store, "get_redis", lambda: client)
    return client


def test_store_scan_serialises_nested_values(client):
    store.store_scan("s1", {"status": "error", "details": ["a: b"], "timestamp_unix": 12.5})
    mapping = client.hset.call_args.kwargs["mapping"]
    assert mapping["details"] == json.dumps(["a: b"])
    assert mapping["status"] == "error"
    client.zadd.assert_called_once_with("doctor:scans", {"s1": 12.5})


def test_get_scan_decodes_json_fields(client):
    client.hgetall.return_value = {"details": '["x"]', "status": "ok"}
    assert store.get_scan("s1") == {"details": ["x"], "status": "ok"}


def test_recent_scans_newest_first(client):
    store.get_recent_scans(5)
    client.zrevrange.assert_called_once_with("doctor:scans", 0, 4)


def test_nudge_log_round_trip(client):
    store.store_nudge("gt-witness", {"message": "hi"})
    pushed = client.rpush.call_args.args
    assert pushed[0] == "nudge:gt-witness"
    client.lrange.return_value = [pushed[1]]
    assert store.get_nudges("gt-witness") == [{"message": "hi"}]
