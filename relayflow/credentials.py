"""Provider credential lookup."""

from __future__ import annotations

from typing import Optional

from .config import ProvidersConfig


class CredentialStore:
    """Answers whether a provider has credentials configured.

    A provider counts as configured when it has an API key. The ``local``
    provider needs no key and is configured by a base URL instead.
    """

    def __init__(self, providers: Optional[ProvidersConfig] = None) -> None:
        self._providers = providers or ProvidersConfig()

    def api_key(self, provider: str) -> Optional[str]:
        entry = self._providers.get(provider)
        return entry.api_key if entry else None

    def base_url(self, provider: str) -> Optional[str]:
        entry = self._providers.get(provider)
        return entry.base_url if entry else None

    def is_configured(self, provider: str) -> bool:
        if provider == "local":
            return bool(self.base_url(provider))
        return bool(self.api_key(provider))
