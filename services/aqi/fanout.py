"""
Bounded concurrent AQI estimation for many points: per-call timeout, batch deadline, cancellation.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from services.aqi.estimator import AQIEstimator, TimeFilter
from services.geo.coordinates import Coordinate

logger = logging.getLogger(__name__)


@dataclass
class FanOutResult:
    """values[i] is the AQI for coords[i], or None when that call timed out or failed."""

    values: List[Optional[int]] = field(default_factory=list)
    timed_out: int = 0
    errors: List[BaseException] = field(default_factory=list)

    @property
    def completed(self) -> List[int]:
        return [v for v in self.values if v is not None]

    @property
    def failed(self) -> bool:
        return bool(self.errors)


def deadline_at(seconds: Optional[float]) -> Optional[float]:
    """Absolute event-loop time `seconds` from now, or None for no deadline."""
    if seconds is None:
        return None
    return asyncio.get_running_loop().time() + seconds


def remaining(deadline: Optional[float]) -> Optional[float]:
    """Seconds left until an absolute loop-time deadline (0 once it has passed), or None."""
    if deadline is None:
        return None
    return max(0.0, deadline - asyncio.get_running_loop().time())


async def estimate_many(
    estimator: AQIEstimator,
    coords: Sequence[Coordinate],
    time_filter: Optional[TimeFilter] = None,
    concurrency: int = 16,
    call_timeout: Optional[float] = None,
    deadline: Optional[float] = None,
) -> FanOutResult:
    """
    Estimate AQI for every coordinate with at most `concurrency` calls in flight.
    Each call is bounded by call_timeout seconds, the whole batch by deadline seconds;
    calls still pending at the deadline are cancelled and reported as timed out.
    Cancelling the caller cancels all in-flight calls.
    """
    if not coords:
        return FanOutResult()
    sem = asyncio.Semaphore(max(1, concurrency))

    async def _one(coord: Coordinate) -> int:
        async with sem:
            return await asyncio.wait_for(estimator.estimate(coord, time_filter), timeout=call_timeout)

    tasks = [asyncio.ensure_future(_one(c)) for c in coords]
    try:
        _, pending = await asyncio.wait(tasks, timeout=deadline)
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
    finally:
        for t in tasks:
            if not t.done():
                t.cancel()

    result = FanOutResult()
    for t in tasks:
        if t.cancelled():
            result.values.append(None)
            result.timed_out += 1
            continue
        exc = t.exception()
        if isinstance(exc, asyncio.TimeoutError):
            result.values.append(None)
            result.timed_out += 1
        elif exc is not None:
            result.values.append(None)
            result.errors.append(exc)
        else:
            result.values.append(t.result())
    if result.timed_out or result.errors:
        logger.warning(
            "AQI fan-out: %s/%s completed, %s timed out, %s failed",
            len(result.completed), len(coords), result.timed_out, len(result.errors),
        )
    return result
