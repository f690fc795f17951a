# src/glide/secrets/sources.py

from __future__ import annotations
from typing import Protocol, Optional, Dict, Iterable, List, Union
import os
import logging

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)


class SecretSource(Protocol):
    def get(self, service: str) -> Optional[str]: ...


class EnvSource:
    """`service` is an exact variable name, or a name we derive <SERVICE>_API_KEY from."""

    def get(self, service: str) -> Optional[str]:
        for key in (service, f"{service.upper()}_API_KEY"):
            val = os.getenv(key)
            if val and val.strip():
                return val.strip()
        return None


class KeyringSource:
    ACCOUNTS = ("api_key", "default")

    def __init__(self, backend=None):
        self._kr = backend or keyring

    def get(self, service: str) -> Optional[str]:
        try:
            cred = self._kr.get_credential(service, None)
            if cred is not None and cred.password:
                return cred.password.strip()
            for account in self.ACCOUNTS:
                val = self._kr.get_password(service, account)
                if val:
                    return val.strip()
        except KeyringError as e:
            # No usable backend (headless CI, locked keychain): fall through to other sources
            logger.debug("keyring lookup for %r failed: %s", service, e)
        return None


_ALLOWED_METHODS = {"env", "keyring"}


def _normalise_methods(method: Union[str, Iterable[str]]) -> List[str]:
    methods = [method] if isinstance(method, str) else list(method)
    norm: List[str] = []
    for m in methods:
        key = str(m).strip().lower()
        if key not in _ALLOWED_METHODS:
            raise ValueError(f"Unknown secrets method '{m}'. Allowed: {sorted(_ALLOWED_METHODS)}")
        if key not in norm:
            norm.append(key)
    return norm


def build_secret_sources(method: Union[str, Iterable[str]]) -> List[SecretSource]:
    return [EnvSource() if name == "env" else KeyringSource() for name in _normalise_methods(method)]


class SecretsResolver:
    """
    Resolve a provider credential using one or more methods, in order.
    mapping: per-provider map of names -> service/env-key,
      e.g. { "gemini": { "api_key": "GEMINI_API_KEY" } }
    """
    def __init__(self, method: Union[str, Iterable[str]] = "env",
                 mapping: Optional[Dict[str, Dict[str, str]]] = None):
        self._sources = build_secret_sources(method)
        self._map = mapping or {}

    def secret(self, provider: str, name: str = "api_key") -> Optional[str]:
        service = self._map.get(provider, {}).get(name, provider)
        for src in self._sources:
            val = src.get(service)
            if val:
                return val
        return None
