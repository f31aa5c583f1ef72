# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Timeouts, retries and a circuit breaker for outbound HTTP calls."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from giftsniper.shared.config import ResilienceConfig
from giftsniper.shared.logging import logger

T = TypeVar("T")


class CircuitOpenError(RuntimeError):
    pass


@dataclass
class CircuitBreaker:
    """In-memory breaker: opens after ``failure_threshold`` consecutive failures."""

    failure_threshold: int
    reset_timeout: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def __post_init__(self) -> None:
        self._failures = 0
        self._opened_at: float | None = None

    @classmethod
    def from_config(cls, config: ResilienceConfig) -> CircuitBreaker:
        return cls(
            failure_threshold=config.circuit_fail_threshold,
            reset_timeout=config.circuit_reset_timeout,
        )

    @property
    def is_open(self) -> bool:
        return self._opened_at is not None

    def allow(self) -> bool:
        if self._opened_at is None:
            return True
        if self.clock() - self._opened_at >= self.reset_timeout:
            logger.info("breaker:half_open")
            self._opened_at = None
            self._failures = 0
            return True
        logger.warning("breaker:open refusing call")
        return False

    def on_success(self) -> None:
        self._failures = 0
        self._opened_at = None

    def on_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold and self._opened_at is None:
            self._opened_at = self.clock()
            logger.error(f"breaker:opened failures={self._failures}")


async def resilient_call(  # noqa: UP047
    func: Callable[..., Awaitable[T]],
    *args: Any,
    policy: ResilienceConfig | None = None,
    breaker: CircuitBreaker | None = None,
    timeout: float | None = None,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    **kwargs: Any,
) -> T:
    """Run ``func`` with a timeout per try, exponential retries and a breaker."""

    policy = policy or ResilienceConfig()  # type: ignore[call-arg]
    breaker = breaker or CircuitBreaker.from_config(policy)

    if not breaker.allow():
        raise CircuitOpenError("circuit breaker is open")

    timeout = timeout or policy.default_timeout
    retry = AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_exponential(multiplier=policy.backoff_base, max=policy.backoff_cap),
        retry=retry_if_exception_type(retry_on),
        reraise=True,
    )

    try:
        async for attempt in retry:
            with attempt:
                logger.debug(
                    f"resilience:attempt n={attempt.retry_state.attempt_number} "
                    f"func={getattr(func, '__name__', func)}"
                )
                result = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
    except Exception:
        breaker.on_failure()
        raise
    breaker.on_success()
    return result


__all__ = ["CircuitBreaker", "CircuitOpenError", "resilient_call"]
