"""
Pending Requests

Table of outbound requests waiting for the reply that carries the same
correlation id. The client's background reader resolves entries; anything it
cannot match goes to the ordinary inbox.
"""

import asyncio
from typing import Dict, Optional


class PendingRequests:

    def __init__(self):
        self._waiters: Dict[str, asyncio.Future] = {}
        self._error: Optional[Exception] = None

    def __len__(self):
        return len(self._waiters)

    def __contains__(self, correlation_id):
        return correlation_id in self._waiters

    def register(self, correlation_id: str) -> asyncio.Future:
        """
        Create the one-shot future for a request.

        If the table was already failed the future comes back failed, so a
        request issued after the reader died does not wait forever.
        """
        if correlation_id in self._waiters:
            raise KeyError(f"Correlation id already pending: {correlation_id}")
        waiter = asyncio.get_running_loop().create_future()
        if self._error is not None:
            waiter.set_exception(self._error)
        self._waiters[correlation_id] = waiter
        return waiter

    def resolve(self, correlation_id: Optional[str], message: bytes) -> bool:
        """Complete the matching request. Returns False if nothing was waiting."""
        if correlation_id is None:
            return False
        waiter = self._waiters.get(correlation_id)
        if waiter is None or waiter.done():
            return False
        del self._waiters[correlation_id]
        waiter.set_result(message)
        return True

    def discard(self, correlation_id: str) -> None:
        """Drop a request; a failure nobody awaited is marked as retrieved."""
        waiter = self._waiters.pop(correlation_id, None)
        if waiter is None:
            return
        if not waiter.done():
            waiter.cancel()
        elif not waiter.cancelled():
            waiter.exception()

    def fail_all(self, error: Exception) -> None:
        """
        Fail every pending request and every request registered later.

        Failed requests stay in the table until discarded.
        """
        self._error = error
        for waiter in self._waiters.values():
            if not waiter.done():
                waiter.set_exception(error)

    def reset(self) -> None:
        for correlation_id in list(self._waiters):
            self.discard(correlation_id)
        self._error = None
