"""Per-provider pacing and rate-limit backoff for outbound provider calls."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.errors import TransientProviderError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from mediashelf.domain.model import Provider

log = getLogger(__name__)

type Wait = Callable[[float], bool]
"""Block for the given seconds; return ``False`` when interrupted."""

_RETRY_HINT = re.compile(
    r"(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>ms|milliseconds?|s|secs?|seconds?)?\b",
    re.IGNORECASE,
)


class CallInterrupted(RuntimeError):  # noqa: N818
    """A throttle wait was cut short by cancellation."""


def parse_retry_after(hint: float | str | None) -> float | None:
    """Extract seconds from a provider hint (``3``, ``"3.2"``, ``"retry in 3.2s"``)."""

    if hint is None:
        return None
    if isinstance(hint, (int, float)):
        return max(float(hint), 0.0)
    text = hint.strip()
    if not text:
        return None
    try:
        return max(float(text), 0.0)
    except ValueError:
        pass
    found = _RETRY_HINT.search(text)
    if found is None:
        return None
    seconds = float(found.group("value"))
    unit = (found.group("unit") or "s").lower()
    if unit.startswith("m"):
        seconds /= 1000
    return seconds


@dataclass(slots=True, frozen=True, kw_only=True)
class BackoffPolicy:
    max_retries: int = 3
    retry_margin_seconds: float = 1.0
    base_seconds: float = 2.0
    ceiling_seconds: float = 300.0

    def delay_for(self, attempt: int, retry_after: float | str | None = None) -> float:
        """Delay before retry number ``attempt`` (1-based)."""

        hinted = parse_retry_after(retry_after)
        if hinted is not None:
            return min(hinted + self.retry_margin_seconds, self.ceiling_seconds)
        return min(self.base_seconds**attempt, self.ceiling_seconds)


def _sleep(seconds: float) -> bool:
    time.sleep(seconds)
    return True


class ProviderThrottle:
    """Space calls to each provider and retry rate-limited ones.

    Every provider has its own minimum gap between calls. A call failing with
    ``TransientProviderError`` is retried up to ``policy.max_retries`` times;
    the last failure is re-raised.
    """

    def __init__(
        self,
        *,
        delays: Mapping[Provider, float] | None = None,
        default_delay: float = 1.0,
        policy: BackoffPolicy | None = None,
        wait: Wait | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._delays = dict(delays or {})
        self._default_delay = default_delay
        self.policy = policy or BackoffPolicy()
        self._wait = wait or _sleep
        self._clock = clock
        self._last_call: dict[Provider, float] = {}

    def delay_for(self, provider: Provider) -> float:
        return self._delays.get(provider, self._default_delay)

    def call[T](self, provider: Provider, func: Callable[[], T], *, wait: Wait | None = None) -> T:
        waiter = wait or self._wait
        attempt = 0
        while True:
            self._pace(provider, waiter)
            try:
                return func()
            except TransientProviderError as exc:
                error = exc
            finally:
                self._last_call[provider] = self._clock()

            if attempt >= self.policy.max_retries:
                log.warning("%s call failed after %s retries: %s", provider, attempt, error)
                raise error
            attempt += 1
            delay = self.policy.delay_for(attempt, error.retry_after)
            log.warning(
                "%s rate limited (%s); retry %s/%s in %.1fs",
                provider,
                error,
                attempt,
                self.policy.max_retries,
                delay,
            )
            if not waiter(delay):
                raise CallInterrupted(f"{provider} retry wait interrupted") from error

    def _pace(self, provider: Provider, waiter: Wait) -> None:
        last = self._last_call.get(provider)
        if last is None:
            return
        remaining = self.delay_for(provider) - (self._clock() - last)
        if remaining > 0 and not waiter(remaining):
            raise CallInterrupted(f"{provider} pacing wait interrupted")
