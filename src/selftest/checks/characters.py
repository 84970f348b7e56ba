"""Character checks: list, create, detail, search by tag."""

from __future__ import annotations

import logging

from selftest.checks.common import any_character, require
from selftest.core.check import CheckContext, CheckOutcome
from selftest.core.fixtures import TestCharacterFixture
from selftest.core.payloads import as_int, character_list, contains_id, items
from selftest.errors import CheckFailure, PreconditionError

logger = logging.getLogger(__name__)


async def check_list(ctx: CheckContext) -> CheckOutcome:
    body = require(await ctx.api.get("/api/charlist"), "Character list unavailable")
    return CheckOutcome.ok(f"{len(character_list(body))} characters")


async def check_create(ctx: CheckContext) -> CheckOutcome:
    """Create a fresh character under the operator and remember it for this pass."""
    spec = await ctx.provisioner.spec_generator.generate()
    body = require(
        await ctx.api.post("/api/characters", json=spec.to_payload()),
        "Character creation failed",
    )
    character_id = as_int((body.get("character") or {}).get("id"))
    if character_id is None:
        raise CheckFailure("Character creation response did not include character.id")

    created = TestCharacterFixture(id=character_id, name=spec.name)
    ctx.fixtures.last_created_character = created
    ctx.fixtures.adopt_character(created)
    logger.debug("Created character %s (%s)", character_id, spec.category)
    return CheckOutcome.ok(f"Created character {character_id}: {spec.name}")


async def check_detail(ctx: CheckContext) -> CheckOutcome:
    target = await any_character(ctx)
    body = require(
        await ctx.api.get(f"/api/characters/{target.id}"),
        f"Character {target.id} unavailable",
    )
    return CheckOutcome.ok(f"Character: {body.get('name')}")


async def check_search_by_tag(ctx: CheckContext) -> CheckOutcome:
    """The target character must be discoverable through its hashtag."""
    target = ctx.fixtures.search_target()
    if target is None:
        raise PreconditionError("No character to search for")
    tag = ctx.config.discovery_tag
    return await search_for(ctx, tag, target.id)


async def search_for(ctx: CheckContext, query: str, target_id: int) -> CheckOutcome:
    body = require(
        await ctx.api.get("/api/search", params={"query": query}),
        "Search failed",
    )
    results = items(body, "characters")
    if not results:
        return CheckOutcome.fail(f"Search for '{query}' returned nothing; character {target_id} missing")
    if not contains_id(results, target_id):
        return CheckOutcome.fail(
            f"Character {target_id} not among {len(results)} results for '{query}'"
        )
    return CheckOutcome.ok(f"{len(results)} results for '{query}', character {target_id} found")
