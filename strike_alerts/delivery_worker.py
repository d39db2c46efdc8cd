"""Delivery Worker - drains pending notifications.

Each pass delivers every pending notification independently, fanned out
over a bounded thread pool. Failures, timeouts and missing references
leave the notification Pending for the next pass; only a confirmed
delivery marks it Sent. Re-running a pass is always safe.
"""

import logging
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from strike_alerts.core.errors import DeliveryFailure, StrikeAlertsError
from strike_alerts.core.formatter import render_alert
from strike_alerts.core.notification import Notification
from strike_alerts.ledger import NotificationLedger
from strike_alerts.location_store import LocationStore, utc_now


logger = logging.getLogger(__name__)


DEFAULT_CONCURRENCY = 4
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class DeliveryOutcome:
    """Result of one notification's delivery attempt.

    Attributes:
        notification: The notification attempted
        success: Whether it was delivered and marked Sent
        error: Reason if not delivered
    """
    notification: Notification
    success: bool
    error: str | None = None


@dataclass
class DeliveryPassResult:
    """Aggregate result of a delivery pass.

    Attributes:
        attempted: Pending notifications processed
        sent: Notifications delivered and marked Sent
        failed: Notifications left Pending
        errors: One message per failed notification
    """
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True if every attempted notification was sent."""
        return self.failed == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the pass."""
        return (
            f"Attempted {self.attempted} notifications, "
            f"{self.sent} sent, "
            f"{self.failed} failed"
        )

    def as_dict(self) -> dict[str, int]:
        """Counts as a plain dict."""
        return {"attempted": self.attempted, "sent": self.sent, "failed": self.failed}


class DeliveryWorker:
    """Delivers pending notifications through a delivery capability."""

    def __init__(
        self,
        ledger: NotificationLedger,
        strikes: Any,
        locations: LocationStore,
        delivery_client: Any,
        max_concurrency: int = DEFAULT_CONCURRENCY,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize delivery worker.

        Args:
            ledger: Notification ledger (source of pending work, sink for Sent)
            strikes: Anything with get_strike(strike_id)
            locations: Location store, for the user's address context
            delivery_client: Anything with attempt_delivery(user_id, message)
            max_concurrency: Maximum parallel delivery attempts
            timeout_seconds: How long to wait for each attempt
            clock: Source of the current time
        """
        self.ledger = ledger
        self.strikes = strikes
        self.locations = locations
        self.delivery_client = delivery_client
        self.max_concurrency = max(1, max_concurrency)
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    def _deliver(self, notification: Notification) -> DeliveryOutcome:
        """Attempt delivery of a single notification."""
        strike = self.strikes.get_strike(notification.strike_id)
        if strike is None:
            return DeliveryOutcome(
                notification=notification,
                success=False,
                error=f"Strike {notification.strike_id} not found",
            )

        location = self.locations.latest_location(notification.user_id)
        if location is None:
            return DeliveryOutcome(
                notification=notification,
                success=False,
                error=f"No location for user {notification.user_id}",
            )

        message = render_alert(notification, strike, location)
        response = self.delivery_client.attempt_delivery(notification.user_id, message)

        if not response.success:
            return DeliveryOutcome(
                notification=notification,
                success=False,
                error=response.error or "Delivery not confirmed",
            )

        self.ledger.mark_sent(notification.id, self.clock())
        return DeliveryOutcome(notification=notification, success=True)

    def _collect(self, notification: Notification, future: "Future[DeliveryOutcome]") -> DeliveryOutcome:
        """Read a finished attempt, turning errors into failures."""
        try:
            return future.result()
        except DeliveryFailure as e:
            error = f"Delivery failed: {e}"
        except StrikeAlertsError as e:
            error = str(e)
        except Exception as e:
            logger.exception("Unexpected error delivering notification %s", notification.id)
            error = f"Unexpected error: {e}"

        return DeliveryOutcome(notification=notification, success=False, error=error)

    def _timed_out(self, notification: Notification) -> DeliveryOutcome:
        return DeliveryOutcome(
            notification=notification,
            success=False,
            error=f"Timed out after {self.timeout_seconds}s",
        )

    def _run_attempts(self, pending: list[Notification]) -> list[DeliveryOutcome]:
        """Run every attempt with at most max_concurrency in flight.

        Each attempt's timeout is measured from its own start. A timed-out
        attempt is abandoned and its slot goes to the next queued
        notification, so a hung call never holds up the rest.
        """
        queue = deque(pending)
        in_flight: dict[Future, tuple[Notification, float]] = {}
        outcomes: list[DeliveryOutcome] = []

        # One thread per notification at most: submitted attempts start at once
        # even while abandoned attempts still hold their threads
        executor = ThreadPoolExecutor(max_workers=len(pending), thread_name_prefix="delivery")
        try:
            while queue or in_flight:
                while queue and len(in_flight) < self.max_concurrency:
                    notification = queue.popleft()
                    future = executor.submit(self._deliver, notification)
                    in_flight[future] = (notification, time.monotonic())

                first_deadline = min(started for _, started in in_flight.values()) + self.timeout_seconds
                done, _ = wait(
                    in_flight,
                    timeout=max(0.0, first_deadline - time.monotonic()),
                    return_when=FIRST_COMPLETED,
                )

                for future in done:
                    notification, _ = in_flight.pop(future)
                    outcomes.append(self._collect(notification, future))

                now = time.monotonic()
                for future, (notification, started) in list(in_flight.items()):
                    if now - started >= self.timeout_seconds:
                        del in_flight[future]
                        outcomes.append(self._timed_out(notification))
        finally:
            # Abandoned attempts are not waited on
            executor.shutdown(wait=False, cancel_futures=True)

        return outcomes

    def run_delivery_pass(self) -> DeliveryPassResult:
        """Attempt delivery of every pending notification once.

        Never raises for delivery problems: they are counted as failures
        and the notification stays Pending.

        Returns:
            DeliveryPassResult with attempted/sent/failed counts
        """
        pending = self.ledger.list_pending()
        result = DeliveryPassResult()

        if not pending:
            logger.info("No pending notifications")
            return result

        logger.info("Delivering %d pending notifications", len(pending))

        for outcome in self._run_attempts(pending):
            result.attempted += 1
            if outcome.success:
                result.sent += 1
                continue

            result.failed += 1
            result.errors.append(f"{outcome.notification.id}: {outcome.error}")
            logger.warning(
                "Notification %s for %s left pending: %s",
                outcome.notification.id,
                outcome.notification.user_id,
                outcome.error,
            )

        logger.info("Delivery pass complete: %s", result.summary)
        return result
