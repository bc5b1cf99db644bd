from __future__ import annotations

import json

from expo_log.catalog import Pavilion
from expo_log.codec import encode_visited
from expo_log.geo import MapSize, Point
from expo_log.state import Mode, VisitedSession, parse_mode
from expo_log.store import JsonFileStore, MemoryStore

KEY = "expo-visited"

CATALOG = [
    Pavilion(id="b", name="Beta", coordinate=Point(0.5, 0.5), hitbox_radius=0.05),
    Pavilion(id="a", name="Alpha", coordinate=Point(0.1, 0.1)),
    Pavilion(id="c", name="Gamma", coordinate=Point(0.9, 0.9)),
]


class BrokenStore:
    def get(self, key: str):
        raise OSError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        raise OSError("storage unavailable")


def test_parse_mode_defaults_to_edit() -> None:
    assert parse_mode(None) is Mode.EDIT
    assert parse_mode("") is Mode.EDIT
    assert parse_mode("bogus") is Mode.EDIT
    assert parse_mode("readonly") is Mode.READONLY


def test_toggle_flips_and_persists() -> None:
    store = MemoryStore()
    s = VisitedSession.start(CATALOG, store)
    assert s.toggle("a")
    assert s.is_visited("a")
    assert json.loads(store.get(KEY)) == {"a": True}

    assert s.toggle("a")
    assert not s.is_visited("a")
    assert json.loads(store.get(KEY)) == {"a": False}


def test_toggle_unknown_id_is_a_no_op() -> None:
    store = MemoryStore()
    s = VisitedSession.start(CATALOG, store)
    assert not s.toggle("zzz")
    assert s.visited == {}
    assert store.get(KEY) is None


def test_edit_session_restores_from_local_store() -> None:
    store = MemoryStore({KEY: json.dumps({"c": True})})
    s = VisitedSession.start(CATALOG, store, token="ignored")
    assert s.visited == {"c": True}
    assert s.visited_count() == 1


def test_malformed_saved_state_starts_empty() -> None:
    for raw in ["not json", json.dumps([1, 2]), json.dumps({"a": "yes"})]:
        s = VisitedSession.start(CATALOG, MemoryStore({KEY: raw}))
        assert s.visited == {}


def test_store_failures_never_reach_the_caller() -> None:
    s = VisitedSession.start(CATALOG, BrokenStore())
    assert s.visited == {}
    assert s.toggle("a")
    assert s.is_visited("a")


def test_readonly_session_restores_from_token_and_ignores_toggles() -> None:
    token = encode_visited({"a": True, "c": True}, CATALOG)
    store = MemoryStore()
    s = VisitedSession.start(CATALOG, store, mode=Mode.READONLY, token=token)
    assert s.visited == {"a": True, "b": False, "c": True}

    assert not s.toggle("b")
    assert not s.is_visited("b")
    assert store.get(KEY) is None


def test_readonly_session_with_bad_token_starts_empty() -> None:
    for token in ["+++", "AA", "AAEA"]:  # bad alphabet, no header, wrong length
        s = VisitedSession.start(CATALOG, MemoryStore(), mode=Mode.READONLY, token=token)
        assert s.visited == {}


def test_switch_to_edit_saves_shared_state_locally() -> None:
    token = encode_visited({"b": True}, CATALOG)
    store = MemoryStore()
    s = VisitedSession.start(CATALOG, store, mode=Mode.READONLY, token=token)

    s.switch_to_edit()
    assert s.mode is Mode.EDIT
    assert json.loads(store.get(KEY))["b"] is True
    assert s.toggle("a")


def test_query_params_follow_mode_and_state() -> None:
    s = VisitedSession.start(CATALOG, MemoryStore())
    # nothing visited still encodes a length header, so the token is present
    assert s.query_params() == {"mode": "edit", "visited": s.token()}
    assert s.token() == "AAMA"

    s.toggle("a")
    params = s.query_params()
    assert params["mode"] == "edit"
    assert params["visited"] == s.token()
    assert s.share_params() == {"mode": "readonly", "visited": s.token()}


def test_empty_catalog_omits_the_visited_param() -> None:
    s = VisitedSession.start([], MemoryStore())
    assert s.token() == ""
    assert s.query_params() == {"mode": "edit"}
    assert s.share_params() == {"mode": "readonly"}


def test_share_token_round_trips_into_a_readonly_session() -> None:
    s = VisitedSession.start(CATALOG, MemoryStore())
    s.toggle("b")
    s.toggle("c")
    shared = VisitedSession.start(CATALOG, MemoryStore(), mode=Mode.READONLY, token=s.token())
    assert shared.visited == {"a": False, "b": True, "c": True}


def test_toggle_at_hit_tests_the_click() -> None:
    s = VisitedSession.start(CATALOG, MemoryStore(), default_radius=0.01)
    size = MapSize(800, 600)

    hit = s.toggle_at(Point(410, 300), size)  # inside b's 40px circle
    assert hit is not None and hit.id == "b"
    assert s.is_visited("b")

    assert s.toggle_at(Point(300, 300), size) is None
    assert s.visited_count() == 1


def test_reset_clears_and_persists() -> None:
    store = MemoryStore()
    s = VisitedSession.start(CATALOG, store)
    s.toggle("a")
    s.reset()
    assert s.visited == {}
    assert json.loads(store.get(KEY)) == {}


def test_json_file_store_round_trip(tmp_path) -> None:
    store = JsonFileStore(tmp_path / "nested" / "store.json")
    assert store.get(KEY) is None

    s = VisitedSession.start(CATALOG, store)
    s.toggle("c")

    again = VisitedSession.start(CATALOG, JsonFileStore(tmp_path / "nested" / "store.json"))
    assert again.visited == {"c": True}


def test_corrupt_store_file_is_repaired_by_the_next_save(tmp_path) -> None:
    path = tmp_path / "store.json"
    path.write_text('{"expo-visited": "{\\"a\\": tr', encoding="utf-8")

    s = VisitedSession.start(CATALOG, JsonFileStore(path))
    assert s.visited == {}
    assert s.toggle("a")

    again = VisitedSession.start(CATALOG, JsonFileStore(path))
    assert again.visited == {"a": True}


def test_json_file_store_leaves_no_temp_files(tmp_path) -> None:
    store = JsonFileStore(tmp_path / "store.json")
    store.set("k", "v1")
    store.set("k", "v2")
    assert store.get("k") == "v2"
    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
