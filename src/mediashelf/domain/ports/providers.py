"""Ports for external metadata providers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from mediashelf.domain.model import NormalizedRecord, Provider


@runtime_checkable
class ProviderAdapter(Protocol):
    """Fetch one provider record by its native id.

    Implementations raise ``TransientProviderError`` for rate limits and network
    failures and ``FatalProviderError`` for unknown ids or malformed payloads.
    """

    @property
    def provider(self) -> Provider: ...

    def fetch_by_id(self, external_id: str) -> NormalizedRecord: ...
