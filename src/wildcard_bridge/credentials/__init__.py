"""Credential storage for per-user API keys."""

from wildcard_bridge.credentials.store import CredentialNotFound, CredentialStore, ReadWriteLock

__all__ = ["CredentialStore", "CredentialNotFound", "ReadWriteLock"]
