"""Cooperative cancellation for a pipeline run."""

import asyncio

from celery.exceptions import SoftTimeLimitExceeded

from encore.core.exceptions import ScrapeCancelled

# Errors that end the whole run instead of being recorded as a skip
RUN_ABORTS = (ScrapeCancelled, SoftTimeLimitExceeded)


class CancellationToken:
    """Set once to stop a run from issuing new fetches.

    In-flight requests are left to finish or time out.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            message = "Scraping run cancelled"
            if self.reason:
                message = f"{message}: {self.reason}"
            raise ScrapeCancelled(message)
