from src.search.session import FUZZY_STORAGE_KEY, SearchSession


class DictStore:
    def __init__(self, values=None):
        self.values = dict(values or {})

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value


class BrokenStore:
    def get(self, key):
        raise OSError("storage unavailable")

    def set(self, key, value):
        raise OSError("storage unavailable")


def test_defaults_to_empty_text_and_fuzzy_on():
    query = SearchSession().current()
    assert query.text == ""
    assert query.fuzzy_enabled is True


def test_loads_persisted_fuzzy_flag():
    session = SearchSession(store=DictStore({FUZZY_STORAGE_KEY: "false"}))
    assert session.current().fuzzy_enabled is False


def test_saves_fuzzy_flag_on_change():
    store = DictStore()
    session = SearchSession(store=store)

    session.set_fuzzy_enabled(False)
    assert store.values[FUZZY_STORAGE_KEY] == "false"
    session.set_fuzzy_enabled(True)
    assert store.values[FUZZY_STORAGE_KEY] == "true"


def test_text_is_trimmed_and_not_persisted():
    store = DictStore()
    session = SearchSession(store=store)

    session.set_text("  mockery ")

    assert session.current().text == "mockery"
    assert list(store.values) == []


def test_every_mutation_notifies_with_new_query():
    session = SearchSession()
    seen = []
    session.subscribe(seen.append)

    session.set_text("bolt")
    session.set_fuzzy_enabled(False)

    assert [(q.text, q.fuzzy_enabled) for q in seen] == [("bolt", True), ("bolt", False)]


def test_previous_snapshot_is_unchanged():
    session = SearchSession()
    before = session.current()
    session.set_text("bolt")
    assert before.text == ""


def test_broken_store_is_not_fatal():
    session = SearchSession(store=BrokenStore())
    assert session.current().fuzzy_enabled is True

    session.set_fuzzy_enabled(False)
    session.set_text("heal")

    assert session.current().fuzzy_enabled is False
    assert session.current().text == "heal"
