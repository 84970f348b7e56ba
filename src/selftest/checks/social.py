"""Social checks.

Follow/like/comment targets come from the social partner first and are
never the operator. Follow is toggled twice so the operator's follow state
is unchanged afterwards.
"""

from __future__ import annotations

from selftest.checks.common import (
    operator_id,
    require,
    social_character_target,
    social_user_target,
)
from selftest.core.check import CheckContext, CheckOutcome
from selftest.errors import CheckFailure


def _follow_label(state: bool) -> str:
    return "following" if state else "not following"


async def check_profile(ctx: CheckContext) -> CheckOutcome:
    me = await operator_id(ctx)
    if me is None:
        raise CheckFailure("No active session")
    body = require(await ctx.api.get(f"/api/profile/{me}"), "Profile unavailable")
    return CheckOutcome.ok(f"Profile: {body.get('nickname')}")


async def check_follow_toggle(ctx: CheckContext) -> CheckOutcome:
    user_id = await social_user_target(ctx)
    path = f"/api/profile/{user_id}/follow"

    first = require(await ctx.api.post(path), "Follow failed")
    second = require(await ctx.api.post(path), "Unfollow failed")
    before, after = bool(first.get("isFollowing")), bool(second.get("isFollowing"))
    if before == after:
        return CheckOutcome.fail(f"Follow state for user {user_id} did not toggle ({_follow_label(after)})")
    return CheckOutcome.ok(f"User {user_id}: {_follow_label(before)} -> {_follow_label(after)}")


async def check_like(ctx: CheckContext) -> CheckOutcome:
    character_id = await social_character_target(ctx)
    body = require(
        await ctx.api.post(f"/api/characters/{character_id}/favorite"),
        "Favorite failed",
    )
    state = "favorited" if body.get("isFavorite") else "unfavorited"
    return CheckOutcome.ok(f"Character {character_id}: {state}")


async def check_comment(ctx: CheckContext) -> CheckOutcome:
    character_id = await social_character_target(ctx)
    require(
        await ctx.api.post(
            f"/api/characters/{character_id}/comments",
            json={"content": ctx.config.comment_text},
        ),
        "Comment failed",
    )
    return CheckOutcome.ok(f"Comment posted on character {character_id}")
