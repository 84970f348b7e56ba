"""Notification checks."""

from __future__ import annotations

import logging
from typing import Any

from selftest.checks.common import require
from selftest.core.check import CheckContext, CheckOutcome
from selftest.core.payloads import as_int, items

logger = logging.getLogger(__name__)


async def _notifications(ctx: CheckContext) -> list[dict[str, Any]]:
    body = require(await ctx.api.get("/api/notifications"), "Notifications unavailable")
    return items(body, "notifications")


async def check_list(ctx: CheckContext) -> CheckOutcome:
    return CheckOutcome.ok(f"{len(await _notifications(ctx))} notifications")


async def check_unread_count(ctx: CheckContext) -> CheckOutcome:
    body = require(
        await ctx.api.get("/api/notifications/unread-count"),
        "Unread count unavailable",
    )
    return CheckOutcome.ok(f"Unread: {body.get('unreadCount') or 0}")


async def check_mark_read(ctx: CheckContext) -> CheckOutcome:
    """Mark the newest notification read, seeding once if the inbox is empty."""
    notifications = await _notifications(ctx)
    if not notifications:
        logger.info("Inbox empty, seeding social fixtures")
        await ctx.provisioner.prepare_social_fixtures(silent=True)
        notifications = await _notifications(ctx)
    if not notifications:
        return CheckOutcome.fail("No notifications to mark as read")

    notification_id = as_int(notifications[0].get("id"))
    if notification_id is None:
        return CheckOutcome.fail(f"Newest notification has no usable id: {notifications[0].get('id')!r}")
    require(
        await ctx.api.put(
            "/api/notifications/read",
            json={"notificationIds": [notification_id]},
        ),
        "Mark read failed",
    )
    return CheckOutcome.ok(f"Notification {notification_id} marked read")
