"""Points checks.

The balance read takes a PointSnapshot; charge and attendance add what they
changed to ``expected_point_delta``; the verification check compares the
observed signed delta against it.
"""

from __future__ import annotations

from selftest.checks.common import require
from selftest.core.check import CheckContext, CheckOutcome
from selftest.core.fixtures import PointSnapshot
from selftest.errors import PreconditionError

POINTS_PATH = "/api/points"


async def check_balance(ctx: CheckContext) -> CheckOutcome:
    body = require(await ctx.api.get(POINTS_PATH), "Point balance unavailable")
    snapshot = PointSnapshot.from_body(body)
    ctx.fixtures.point_snapshot = snapshot
    return CheckOutcome.ok(
        f"Total points: {snapshot.total} (free {snapshot.free}, paid {snapshot.paid})"
    )


async def check_charge(ctx: CheckContext) -> CheckOutcome:
    amount = ctx.config.charge_amount
    body = require(
        await ctx.api.post(POINTS_PATH, json={"action": "charge", "amount": amount}),
        "Charge failed",
    )
    ctx.fixtures.expected_point_delta += amount
    return CheckOutcome.ok(body.get("message") or f"Charged {amount} points")


async def check_attendance(ctx: CheckContext) -> CheckOutcome:
    """Daily attendance; an 'already claimed' rejection counts as success."""
    result = await ctx.api.post(POINTS_PATH, json={"action": "attend"})
    if result.ok:
        ctx.fixtures.expected_point_delta += ctx.config.attendance_bonus
        message = result.json().get("message") or f"+{ctx.config.attendance_bonus} points"
        return CheckOutcome.ok(f"Attendance claimed: {message}")

    message = result.error_message("Attendance failed")
    if any(marker in message for marker in ctx.config.attendance_markers):
        return CheckOutcome.ok(f"Attendance already claimed today: {message}")
    return CheckOutcome.fail(message)


async def check_balance_delta(ctx: CheckContext) -> CheckOutcome:
    before = ctx.fixtures.point_snapshot
    if before is None:
        raise PreconditionError("No point snapshot; the balance read has not run in this pass")

    after = PointSnapshot.from_body(require(await ctx.api.get(POINTS_PATH), "Point balance unavailable"))
    delta = after.total - before.total
    expected = ctx.fixtures.expected_point_delta
    if delta != expected:
        return CheckOutcome.fail(
            f"Balance changed by {delta:+d}, expected {expected:+d} "
            f"({before.total} -> {after.total})"
        )
    return CheckOutcome.ok(f"Balance changed by {delta:+d} as expected ({before.total} -> {after.total})")
