"""Admin notifications about scraping runs.

Notifications are emitted as structured log records on the
``encore.notifications`` logger; delivery (email, chat) is left to
whatever ships those logs.
"""

import logging
from datetime import datetime, timezone

from encore.config import get_settings

logger = logging.getLogger("encore.notifications")

SCRAPING_FAILURE = "scraping_failure"
DATA_REVIEW_REQUIRED = "data_review_required"

_DEFAULT_MESSAGES = {
    SCRAPING_FAILURE: "Scraping run {run_id} has failed: {error}",
    DATA_REVIEW_REQUIRED: "New scraped data from run {run_id} is available for review",
}


def notify_admins(notification_type: str, run: dict | None = None, message: str | None = None) -> dict | None:
    """Log an admin notification and return its payload (None when disabled)."""
    if not get_settings().notifications_enabled:
        return None

    run = run or {}
    run_id = run.get("id")
    if message is None:
        template = _DEFAULT_MESSAGES.get(notification_type, "Notification of type: {type}")
        message = template.format(run_id=run_id, error=run.get("error_message") or "Unknown error", type=notification_type)

    payload = {
        "type": notification_type,
        "run_id": str(run_id) if run_id else None,
        "status": run.get("status"),
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    level = logging.ERROR if notification_type == SCRAPING_FAILURE else logging.INFO
    logger.log(level, f"Admin notification: {message}", extra={"notification": payload})
    return payload
