"""Other checks: ranking, search by name, personas."""

from __future__ import annotations

import time

from selftest.checks.characters import search_for
from selftest.checks.common import require
from selftest.core.check import CheckContext, CheckOutcome
from selftest.core.payloads import as_int, items
from selftest.errors import CheckFailure, PreconditionError

PERSONA_NICKNAME_PREFIX = "テストペルソナ_"
PERSONA_DESCRIPTION = "セルフテスト用のペルソナです。"


async def check_ranking(ctx: CheckContext) -> CheckOutcome:
    require(await ctx.api.get("/api/ranking"), "Ranking unavailable")
    return CheckOutcome.ok("Ranking retrieved")


async def check_search_by_name(ctx: CheckContext) -> CheckOutcome:
    """The target character must be discoverable by its own name."""
    target = ctx.fixtures.search_target()
    if target is None:
        raise PreconditionError("No character to search for")

    name = target.name
    if not name:
        body = require(
            await ctx.api.get(f"/api/characters/{target.id}"),
            f"Character {target.id} unavailable",
        )
        name = body.get("name")
    if not name:
        raise PreconditionError(f"Character {target.id} has no name to search by")
    return await search_for(ctx, name, target.id)


async def check_persona_list(ctx: CheckContext) -> CheckOutcome:
    body = require(await ctx.api.get("/api/persona"), "Persona list unavailable")
    return CheckOutcome.ok(f"{len(items(body, 'personas'))} personas")


async def check_persona_create(ctx: CheckContext) -> CheckOutcome:
    body = require(
        await ctx.api.post(
            "/api/persona",
            json={
                "nickname": f"{PERSONA_NICKNAME_PREFIX}{int(time.time() * 1000)}",
                "age": 20,
                "gender": "その他",
                "description": PERSONA_DESCRIPTION,
            },
        ),
        "Persona creation failed",
    )
    persona_id = as_int(body.get("id"))
    if persona_id is None:
        raise CheckFailure("Persona creation response did not include id")
    ctx.fixtures.persona_id = persona_id
    return CheckOutcome.ok(f"Persona {persona_id} created")


async def check_persona_delete(ctx: CheckContext) -> CheckOutcome:
    persona_id = ctx.fixtures.persona_id
    if persona_id is None:
        raise PreconditionError("No persona was created in this pass")
    require(await ctx.api.delete(f"/api/persona/{persona_id}"), "Persona deletion failed")
    ctx.fixtures.persona_id = None
    return CheckOutcome.ok(f"Persona {persona_id} deleted")
