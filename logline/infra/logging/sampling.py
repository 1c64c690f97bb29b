"""Request log sampling.

Decides per request whether its log line is emitted. Sampling and ignore
lists only ever reduce the volume of successful traffic: redirects and
errors are always logged.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from logline.core.settings.request_log import RequestLogSettings

SAMPLE_RESOLUTION = 10_000


def uniform_draw() -> float:
    """Return a uniform float in (0.0, 1.0] with 4 digit precision.

    Uses the module-level ``random`` generator, which is safe to share
    between concurrent requests.
    """
    return random.randint(1, SAMPLE_RESOLUTION) / SAMPLE_RESOLUTION


class RequestSampler:
    """Decide whether a request's log line should be emitted.

    Decision order, first match wins:
    1. status >= 300 is always logged
    2. a path in ``ignored_paths`` is never logged
    3. otherwise the line is kept with probability ``sampling_ratio``

    Example:
        # Drop health checks and keep 10% of other successful requests
        sampler = RequestSampler(ignored_paths=["/health"], success_log_sampling_ratio=0.1)

        sampler.should_log(200, "/health")   # False
        sampler.should_log(503, "/health")   # True
    """

    def __init__(
        self,
        ignored_paths: Iterable[str] = (),
        success_log_sampling_ratio: float = 1.0,
        draw: Callable[[], float] = uniform_draw,
    ) -> None:
        """Initialize the sampler.

        Args:
            ignored_paths: Exact request paths suppressed on success.
            success_log_sampling_ratio: Fraction (0.0-1.0) of successful requests to log.
            draw: Source of uniform random values in [0.0, 1.0].
        """
        self.ignored_paths = frozenset(ignored_paths)
        self.sampling_ratio = success_log_sampling_ratio
        self.draw = draw

    @classmethod
    def from_settings(
        cls,
        settings: RequestLogSettings,
        draw: Callable[[], float] = uniform_draw,
    ) -> RequestSampler:
        """Build a sampler from request logging settings."""
        return cls(
            ignored_paths=settings.ignored_paths,
            success_log_sampling_ratio=settings.success_log_sampling_ratio,
            draw=draw,
        )

    def should_log(self, status: int | None, path: str) -> bool:
        """Determine if the request's line should be emitted.

        Args:
            status: Response status code.
            path: Literal request path.

        Returns:
            True if the line should be logged, False otherwise.
        """
        # Redirects and errors are never sampled away
        if isinstance(status, int) and status >= 300:
            return True

        if path in self.ignored_paths:
            return False

        return self._include_in_sample()

    def _include_in_sample(self) -> bool:
        if self.sampling_ratio >= 1.0:
            return True
        if self.sampling_ratio <= 0.0:
            return False
        return self.draw() <= self.sampling_ratio
