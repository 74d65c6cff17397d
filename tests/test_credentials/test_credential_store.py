"""Tests for the credential store."""

import threading

import pytest

from wildcard_bridge.credentials import CredentialNotFound, CredentialStore, ReadWriteLock


class TestCredentialStore:
    """Test CredentialStore."""

    def test_register_and_get(self) -> None:
        store = CredentialStore()
        store.register_key("u1", "sk_test_1")
        assert store.get_key("u1") == "sk_test_1"
        assert "u1" in store
        assert len(store) == 1

    def test_register_replaces_key(self) -> None:
        store = CredentialStore()
        store.register_key("u1", "sk_test_1")
        store.register_key("u1", "sk_test_2")
        assert store.get_key("u1") == "sk_test_2"

    @pytest.mark.parametrize("user_id,api_key", [("", "sk_test_1"), ("u1", "")])
    def test_register_rejects_empty(self, user_id: str, api_key: str) -> None:
        with pytest.raises(ValueError, match="cannot be empty"):
            CredentialStore().register_key(user_id, api_key)

    def test_get_missing(self) -> None:
        with pytest.raises(CredentialNotFound) as exc_info:
            CredentialStore().get_key("nobody")
        assert str(exc_info.value) == "no Stripe API key found for user nobody"

    def test_get_empty_user(self) -> None:
        with pytest.raises(ValueError):
            CredentialStore().get_key("")

    def test_remove(self) -> None:
        store = CredentialStore()
        store.register_key("u1", "sk_test_1")
        store.remove_key("u1")
        store.remove_key("u1")
        assert "u1" not in store

    def test_keys_are_isolated_per_user(self) -> None:
        store = CredentialStore()
        store.register_key("u1", "sk_test_1")
        store.register_key("u2", "sk_test_2")
        assert store.get_key("u1") == "sk_test_1"
        assert store.get_key("u2") == "sk_test_2"

    def test_concurrent_access(self) -> None:
        store = CredentialStore()
        errors: list[Exception] = []

        def writer(index: int) -> None:
            try:
                for n in range(50):
                    store.register_key(f"user-{index}", f"sk_test_{n}")
            except Exception as e:
                errors.append(e)

        def reader(index: int) -> None:
            try:
                for _ in range(50):
                    try:
                        store.get_key(f"user-{index}")
                    except CredentialNotFound:
                        pass
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
        threads += [threading.Thread(target=reader, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert len(store) == 4
        assert store.get_key("user-0") == "sk_test_49"


class TestReadWriteLock:
    """Test ReadWriteLock."""

    def test_readers_share(self) -> None:
        lock = ReadWriteLock()
        with lock.read():
            with lock.read():
                pass

    def test_writer_excludes_readers(self) -> None:
        lock = ReadWriteLock()
        entered = threading.Event()

        with lock.write():
            thread = threading.Thread(target=lambda: _read_and_flag(lock, entered))
            thread.start()
            assert not entered.wait(timeout=0.1)

        thread.join(timeout=5)
        assert entered.is_set()


def _read_and_flag(lock: ReadWriteLock, flag: threading.Event) -> None:
    with lock.read():
        flag.set()
