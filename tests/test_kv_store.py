import pytest
from app.services.auth import AuthService
from app.services.kv_store import KeyValueStore, pattern_to_like


def test_pattern_to_like():
    assert pattern_to_like("resume:*") == "resume:%"
    assert pattern_to_like("a_b*") == "a\\_b%"
    assert pattern_to_like("100%") == "100\\%"

def test_set_get_overwrite(db_session, user):
    kv = KeyValueStore(db_session, user)
    assert kv.get("resume:1") is None
    kv.set("resume:1", "first")
    kv.set("resume:1", "second")
    assert kv.get("resume:1") == "second"
    assert kv.list("*") == ["resume:1"]

def test_list_by_prefix(db_session, user):
    kv = KeyValueStore(db_session, user)
    kv.set("resume:b", "2")
    kv.set("resume:a", "1")
    kv.set("settings", "x")

    assert kv.list("resume:*") == ["resume:a", "resume:b"]
    items = kv.list("resume:*", return_values=True)
    assert [(i.key, i.value) for i in items] == [("resume:a", "1"), ("resume:b", "2")]

def test_list_treats_underscore_literally(db_session, user):
    kv = KeyValueStore(db_session, user)
    kv.set("a_b", "1")
    kv.set("axb", "2")
    assert kv.list("a_b") == ["a_b"]

def test_delete(db_session, user):
    kv = KeyValueStore(db_session, user)
    kv.set("k", "v")
    assert kv.delete("k") is True
    assert kv.delete("k") is False

def test_keys_are_scoped_per_user(db_session, user):
    other = AuthService(db_session).sign_up("sam@example.com", "sam", "Password123!")
    KeyValueStore(db_session, user).set("resume:1", "jane")
    KeyValueStore(db_session, other).set("resume:1", "sam")

    assert KeyValueStore(db_session, user).get("resume:1") == "jane"
    assert KeyValueStore(db_session, other).get("resume:1") == "sam"

    KeyValueStore(db_session, user).flush()
    assert KeyValueStore(db_session, user).list() == []
    assert KeyValueStore(db_session, other).list() == ["resume:1"]
