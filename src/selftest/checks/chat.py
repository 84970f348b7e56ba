"""Chat checks."""

from __future__ import annotations

from selftest.checks.common import any_character, require
from selftest.core.check import CheckContext, CheckOutcome
from selftest.core.payloads import as_int
from selftest.errors import CheckFailure, PreconditionError


async def check_list(ctx: CheckContext) -> CheckOutcome:
    body = require(await ctx.api.get("/api/chatlist"), "Chat list unavailable")
    if not isinstance(body, list):
        raise CheckFailure(f"Chat list is not a list: {type(body).__name__}")
    return CheckOutcome.ok(f"{len(body)} chats")


async def check_create(ctx: CheckContext) -> CheckOutcome:
    character = await any_character(ctx)
    body = require(
        await ctx.api.post("/api/chat/new", json={"characterId": character.id}),
        "Chat creation failed",
    )
    chat_id = as_int(body.get("chatId"))
    if chat_id is None:
        raise CheckFailure("Chat creation response did not include chatId")
    ctx.fixtures.chat_id = chat_id
    return CheckOutcome.ok(f"Chat ID: {chat_id} (character {character.id})")


async def check_send_message(ctx: CheckContext) -> CheckOutcome:
    chat_id = ctx.fixtures.chat_id
    if chat_id is None:
        chats = require(await ctx.api.get("/api/chatlist"), "Chat list unavailable")
        if isinstance(chats, list) and chats and isinstance(chats[0], dict):
            chat_id = as_int(chats[0].get("id"))
    if chat_id is None:
        raise PreconditionError("No chat exists to send a message to")

    require(
        await ctx.api.post(
            f"/api/chat/{chat_id}",
            json={"message": ctx.config.chat_message, "settings": {}},
        ),
        "Message send failed",
    )
    return CheckOutcome.ok(f"Message sent to chat {chat_id}")
