"""Error taxonomy shared by providers, stores and the enrichment loop."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mediashelf.domain.model import Provider


class ProviderError(RuntimeError):
    """Base class for failures reported by a provider adapter."""

    def __init__(self, message: str, *, provider: Provider | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class TransientProviderError(ProviderError):
    """Rate limit or network failure; the same call may succeed later.

    ``retry_after`` carries the provider's hint verbatim: seconds as a number or a
    string such as ``"3"`` or ``"retry in 3.2s"``.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Provider | None = None,
        retry_after: float | str | None = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


class FatalProviderError(ProviderError):
    """Unknown id or malformed payload; retrying will not help."""


class StoreError(RuntimeError):
    """Base class for persistent store failures."""


class StoreWriteError(StoreError):
    """A single write or commit failed; fatal to the current item only."""


class StoreConnectionError(StoreError):
    """The store is unreachable; an enrichment run cannot continue."""
