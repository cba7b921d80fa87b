"""Fixed-interval retry primitive shared by the scan and connect poll loops."""

import asyncio
from typing import Optional


class RetryBudget:
    """
    Counts qualifying attempts against a fixed limit.

    The budget is spent once ``used`` goes past ``limit``: with a limit of 20
    the 21st qualifying attempt is the one that exhausts it.
    """

    def __init__(self, limit: int):
        if limit < 0:
            raise ValueError("limit must be >= 0")
        self.limit = limit
        self.used = 0

    def consume(self) -> int:
        self.used += 1
        return self.used

    def reset(self) -> None:
        self.used = 0

    @property
    def exhausted(self) -> bool:
        return self.used > self.limit

    def __repr__(self) -> str:
        return f"RetryBudget({self.used}/{self.limit})"


async def wait_interval(delay: float, cancel: Optional[asyncio.Event] = None) -> bool:
    """
    Sleep ``delay`` seconds between two polls.

    Returns True if ``cancel`` was set before or during the wait, so the
    caller can stop without issuing another request.
    """
    if cancel is None:
        await asyncio.sleep(delay)
        return False
    if cancel.is_set():
        return True
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True
