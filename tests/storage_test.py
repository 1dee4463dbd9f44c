import json

from src.common.storage import LocalStore
from src.search.session import FUZZY_STORAGE_KEY, SearchSession


def test_get_set_uses_prefix(tmp_path):
    path = tmp_path / "storage.json"
    store = LocalStore(path)

    store.set("fuzzySearchEnabled", "false")

    assert store.get("fuzzySearchEnabled") == "false"
    assert json.loads(path.read_text()) == {"blingus_fuzzySearchEnabled": "false"}


def test_missing_key_is_none(tmp_path):
    assert LocalStore(tmp_path / "storage.json").get("anything") is None


def test_save_and_load_local_round_values(tmp_path):
    store = LocalStore(tmp_path / "storage.json")

    assert store.save_local("favorites", ["Vicious Mockery"])
    assert store.load_local("favorites") == ["Vicious Mockery"]
    assert store.load_local("missing", default=[]) == []


def test_unreadable_file_returns_defaults(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json")
    store = LocalStore(path)

    assert store.load_local("favorites", default="fallback") == "fallback"
    assert store.save_local("favorites", []) is False
    assert store.export_data() == {}


def test_non_string_values_are_read_as_json(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"blingus_count": 5, "blingus_fuzzySearchEnabled": False}))
    store = LocalStore(path)

    assert store.get("count") == "5"
    assert store.load_local("count", "default") == 5
    assert store.export_data() == {"count": 5, "fuzzySearchEnabled": False}
    assert store.get_storage_usage()["keys"] == 2
    assert SearchSession(store=store).current().fuzzy_enabled is False


def test_clear_only_removes_prefixed_keys(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"other_key": "1", "blingus_history": "[]"}))
    store = LocalStore(path)

    assert store.clear_local()
    assert json.loads(path.read_text()) == {"other_key": "1"}


def test_export_import(tmp_path):
    source = LocalStore(tmp_path / "a.json")
    source.save_local("darkMode", True)
    source.save_local("history", ["Thunderwave"])

    target = LocalStore(tmp_path / "b.json")
    assert target.import_data(source.export_data())
    assert target.export_data() == {"darkMode": True, "history": ["Thunderwave"]}


def test_remove_and_usage(tmp_path):
    store = LocalStore(tmp_path / "storage.json")
    store.set("a", "xy")
    store.set("b", "z")

    assert store.get_storage_usage() == {"keys": 2, "size": len("blingus_a") + 2 + len("blingus_b") + 1}
    assert store.remove_local("a")
    assert store.get("a") is None


def test_session_persists_fuzzy_flag_across_sessions(tmp_path):
    path = tmp_path / "storage.json"
    SearchSession(store=LocalStore(path)).set_fuzzy_enabled(False)

    restored = SearchSession(store=LocalStore(path))

    assert restored.current().fuzzy_enabled is False
    assert LocalStore(path).get(FUZZY_STORAGE_KEY) == "false"


def test_session_survives_corrupt_storage(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[1, 2")
    session = SearchSession(store=LocalStore(path))

    session.set_fuzzy_enabled(False)

    assert session.current().fuzzy_enabled is False


def test_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("BARDBOOK_STORAGE_FILE", str(tmp_path / "env.json"))
    assert LocalStore.from_env().path == tmp_path / "env.json"
