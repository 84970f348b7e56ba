"""Auth checks: the operator session."""

from __future__ import annotations

from selftest.core.check import CheckContext, CheckOutcome
from selftest.errors import CheckFailure


async def check_session(ctx: CheckContext) -> CheckOutcome:
    session = await ctx.api.current_session()
    user = session.get("user")
    if not user:
        raise CheckFailure("No active session")
    return CheckOutcome.ok(f"User ID: {user.get('id')}")


async def check_user_info(ctx: CheckContext) -> CheckOutcome:
    session = await ctx.api.current_session()
    user = session.get("user") or {}
    if not user.get("id"):
        raise CheckFailure("Session has no user id")
    return CheckOutcome.ok(f"Name: {user.get('name') or 'N/A'}")
