"""Helpers shared by the check bodies."""

from __future__ import annotations

import logging
from typing import Any

from selftest.core.check import CheckContext
from selftest.core.fixtures import TestCharacterFixture
from selftest.core.payloads import as_dict, as_int
from selftest.core.result import ApiResult
from selftest.errors import CheckFailure, ErrorCode, ErrorContext, PreconditionError

logger = logging.getLogger(__name__)


def require(result: ApiResult, fallback: str) -> Any:
    """Return the decoded body of a successful call, else raise CheckFailure.

    A call that never got a response is reported as a transport failure.
    """
    if not result.ok:
        context = ErrorContext(request={"method": result.request.method, "url": result.request.url})
        if result.response is not None:
            context.response = {"status": result.status_code, "body": result.body}
        raise CheckFailure(
            result.error_message(fallback),
            error_code=None if result.response is not None else ErrorCode.TRANSPORT_FAILED,
            context=context,
            status_code=result.status_code or None,
        )
    return result.json()


async def operator_id(ctx: CheckContext) -> str | None:
    """Id of the signed-in operator as a string, or None without a session."""
    session = await ctx.api.current_session()
    user = session.get("user") or {}
    user_id = user.get("id")
    return str(user_id) if user_id is not None else None


async def any_character(ctx: CheckContext) -> TestCharacterFixture:
    """The pass's own character, the fixture character, or an adopted one."""
    target = ctx.fixtures.search_target()
    if target is None:
        target = await ctx.provisioner.adopt_existing_character()
    if target is None:
        raise PreconditionError("No character exists to run against")
    return target


def _user_candidates(ctx: CheckContext) -> list[int]:
    fixtures = ctx.fixtures
    candidates = []
    if fixtures.partner is not None:
        candidates.append(fixtures.partner.user_id)
    if fixtures.test_user is not None and fixtures.test_user.user_id is not None:
        candidates.append(fixtures.test_user.user_id)
    return candidates


def _character_candidates(ctx: CheckContext) -> list[int]:
    fixtures = ctx.fixtures
    candidates = []
    if fixtures.partner is not None and fixtures.partner.character_id is not None:
        candidates.append(fixtures.partner.character_id)
    if fixtures.character is not None:
        candidates.append(fixtures.character.id)
    return candidates


async def social_user_target(ctx: CheckContext) -> int:
    """A user id that is provably not the operator.

    Tries the social partner, then the test user. When neither qualifies,
    seeds social fixtures silently and tries once more.
    """
    me = await operator_id(ctx)
    for attempt in range(2):
        for candidate in _user_candidates(ctx):
            if str(candidate) != me:
                return candidate
        if attempt == 0:
            logger.info("No social user target, seeding social fixtures")
            await ctx.provisioner.prepare_social_fixtures(silent=True)
    raise PreconditionError("No user distinct from the operator is available")


async def _character_author(ctx: CheckContext, character_id: int) -> str | None:
    """Author id of a character as a string, or None when it cannot be read."""
    result = await ctx.api.get(f"/api/characters/{character_id}")
    if not result.ok:
        logger.info("Character %s unreadable (%s), skipping", character_id, result.status_code)
        return None
    body = as_dict(result.json())
    author_id = as_int(body.get("author_id"))
    if author_id is None:
        author_id = as_int(as_dict(body.get("author")).get("id"))
    return str(author_id) if author_id is not None else None


async def social_character_target(ctx: CheckContext) -> int:
    """A character id to like/comment on that the operator did not author.

    Tries the partner's character, then the fixture character. A candidate
    qualifies only when its detail names an author other than the operator.
    When none qualifies, seeds social fixtures silently and tries once more.
    """
    me = await operator_id(ctx)
    for attempt in range(2):
        for candidate in _character_candidates(ctx):
            author = await _character_author(ctx, candidate)
            if author is not None and author != me:
                return candidate
        if attempt == 0:
            logger.info("No social character target, seeding social fixtures")
            await ctx.provisioner.prepare_social_fixtures(silent=True)
    raise PreconditionError("No character authored by another user is available")
