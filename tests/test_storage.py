"""Tests for consumer key persistence."""

import json

import pytest

from ovhauth import CredentialStore, FileStorage, MemoryStorage, StorageUnavailable


class BrokenStorage:
    def get(self, key):
        raise StorageUnavailable("disk on fire")

    def set(self, key, value):
        raise StorageUnavailable("disk on fire")

    def remove(self, key):
        raise StorageUnavailable("disk on fire")


def test_memory_storage():
    """Test in-memory storage."""
    storage = MemoryStorage()
    assert storage.get("ovh-ck") is None

    storage.set("ovh-ck", "ck1")
    assert storage.get("ovh-ck") == "ck1"

    storage.remove("ovh-ck")
    storage.remove("ovh-ck")
    assert storage.get("ovh-ck") is None


def test_file_storage_round_trip(tmp_path):
    """Test JSON file storage."""
    path = tmp_path / "nested" / "credentials.json"
    storage = FileStorage(path)
    assert storage.get("ovh-ck") is None

    storage.set("ovh-ck", "ck1")
    assert json.loads(path.read_text()) == {"ovh-ck": "ck1"}
    assert FileStorage(path).get("ovh-ck") == "ck1"

    storage.remove("ovh-ck")
    assert storage.get("ovh-ck") is None


def test_file_storage_corrupt_file(tmp_path):
    """Corrupt storage files raise StorageUnavailable."""
    path = tmp_path / "credentials.json"
    path.write_text("{not json")

    with pytest.raises(StorageUnavailable):
        FileStorage(path).get("ovh-ck")


def test_store_starts_anonymous():
    """Test empty credential store."""
    store = CredentialStore("AK", "AS", MemoryStorage())
    credentials = store.get()

    assert not store.is_authenticated()
    assert credentials.application_key == "AK"
    assert credentials.application_secret == "AS"
    assert credentials.consumer_key is None


def test_store_persists_consumer_key():
    """Consumer key is mirrored to storage."""
    storage = MemoryStorage()
    store = CredentialStore("AK", "AS", storage)

    store.set_consumer_key("ck1")
    assert store.is_authenticated()
    assert storage.get("ovh-ck") == "ck1"

    store.clear_consumer_key()
    assert not store.is_authenticated()
    assert storage.get("ovh-ck") is None


def test_store_rehydrates_after_restart(tmp_path):
    """Consumer key is restored from storage."""
    path = tmp_path / "credentials.json"
    CredentialStore("AK", "AS", FileStorage(path)).set_consumer_key("ck1")

    restarted = CredentialStore("AK", "AS", FileStorage(path))

    assert restarted.is_authenticated()
    assert restarted.get().consumer_key == "ck1"


def test_store_without_storage():
    """Test credential store without persistence."""
    store = CredentialStore("AK", "AS")
    store.set_consumer_key("ck1")
    assert store.get().consumer_key == "ck1"
    store.clear_consumer_key()
    assert not store.is_authenticated()


def test_store_survives_broken_storage(caplog):
    """Storage failures degrade to in-memory keys."""
    store = CredentialStore("AK", "AS", BrokenStorage())
    assert not store.is_authenticated()

    store.set_consumer_key("ck1")
    assert store.get().consumer_key == "ck1"

    store.clear_consumer_key()
    assert not store.is_authenticated()
    assert "storage unavailable" in caplog.text


def test_empty_consumer_key_is_anonymous():
    """An empty consumer key means anonymous."""
    storage = MemoryStorage({"ovh-ck": "ck1"})
    store = CredentialStore("AK", "AS", storage)

    store.set_consumer_key("")

    assert not store.is_authenticated()
    assert storage.get("ovh-ck") is None


def test_store_ignores_non_string_consumer_key(tmp_path, caplog):
    """Non-string stored keys are ignored."""
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"ovh-ck": 123}))

    store = CredentialStore("AK", "AS", FileStorage(path))

    assert not store.is_authenticated()
    assert store.get().consumer_key is None
    assert "storage unavailable" in caplog.text
