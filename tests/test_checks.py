"""Tests for individual check bodies."""

from __future__ import annotations

import pytest

from selftest.checks import auth, characters, chat, misc, notifications, points, social
from selftest.checks.common import require
from selftest.core.check import CheckContext
from selftest.core.fixtures import PointSnapshot, SocialPartnerFixture, TestCharacterFixture
from selftest.core.result import ApiRequest, ApiResult
from selftest.errors import CheckFailure, ErrorCode, PreconditionError

from tests.conftest import BASE_URL, OPERATOR_ID, FakePlatform


class TestAuthChecks:
    @pytest.mark.asyncio
    async def test_session(self, ctx: CheckContext) -> None:
        outcome = await auth.check_session(ctx)
        assert outcome.passed
        assert outcome.message == "User ID: 1"

    @pytest.mark.asyncio
    async def test_no_session(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.signed_in = False
        with pytest.raises(CheckFailure):
            await auth.check_session(ctx)

    @pytest.mark.asyncio
    async def test_user_info(self, ctx: CheckContext) -> None:
        outcome = await auth.check_user_info(ctx)
        assert outcome.message == "Name: Operator"


class TestPointsChecks:
    @pytest.mark.asyncio
    async def test_balance_takes_snapshot(self, ctx: CheckContext) -> None:
        outcome = await points.check_balance(ctx)

        assert outcome.passed
        assert ctx.fixtures.point_snapshot == PointSnapshot(free=500, paid=0)

    @pytest.mark.asyncio
    async def test_charge_adds_expected_delta(self, ctx: CheckContext, platform: FakePlatform) -> None:
        outcome = await points.check_charge(ctx)

        assert outcome.passed
        assert platform.paid_points == 100
        assert ctx.fixtures.expected_point_delta == 100

    @pytest.mark.asyncio
    async def test_attendance_twice_is_success_twice(self, ctx: CheckContext) -> None:
        first = await points.check_attendance(ctx)
        second = await points.check_attendance(ctx)

        assert first.passed
        assert first.message.startswith("Attendance claimed")
        assert second.passed
        assert second.message.startswith("Attendance already claimed today")
        assert ctx.fixtures.expected_point_delta == 30

    @pytest.mark.asyncio
    async def test_attendance_other_rejection_fails(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.fail("POST", "/api/points", 500, {"error": "サーバーエラー"})

        outcome = await points.check_attendance(ctx)

        assert not outcome.passed
        assert outcome.message == "サーバーエラー"

    @pytest.mark.asyncio
    async def test_balance_delta_matches(self, ctx: CheckContext) -> None:
        await points.check_balance(ctx)
        await points.check_charge(ctx)
        await points.check_attendance(ctx)

        outcome = await points.check_balance_delta(ctx)

        assert outcome.passed
        assert "+130" in outcome.message

    @pytest.mark.asyncio
    async def test_balance_delta_mismatch(self, ctx: CheckContext, platform: FakePlatform) -> None:
        await points.check_balance(ctx)
        platform.free_points -= 5

        outcome = await points.check_balance_delta(ctx)

        assert not outcome.passed
        assert "-5" in outcome.message

    @pytest.mark.asyncio
    async def test_balance_delta_without_snapshot(self, ctx: CheckContext, platform: FakePlatform) -> None:
        with pytest.raises(PreconditionError):
            await points.check_balance_delta(ctx)
        assert platform.calls == []


class TestCharacterChecks:
    @pytest.mark.asyncio
    async def test_list(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.add_character("a", OPERATOR_ID)
        outcome = await characters.check_list(ctx)
        assert outcome.message == "1 characters"

    @pytest.mark.asyncio
    async def test_create_records_character(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.next_character_id = 42

        outcome = await characters.check_create(ctx)

        assert outcome.passed
        assert ctx.fixtures.last_created_character.id == 42
        assert ctx.fixtures.character.id == 42
        assert platform.characters[42]["author_id"] == OPERATOR_ID

    @pytest.mark.asyncio
    async def test_create_does_not_replace_fixture_character(self, ctx: CheckContext) -> None:
        ctx.fixtures.adopt_character(TestCharacterFixture(id=7))

        await characters.check_create(ctx)

        assert ctx.fixtures.character.id == 7
        assert ctx.fixtures.search_target().id != 7

    @pytest.mark.asyncio
    async def test_detail_adopts_when_empty(self, ctx: CheckContext, platform: FakePlatform) -> None:
        character_id = platform.add_character("既存キャラ", OPERATOR_ID)

        outcome = await characters.check_detail(ctx)

        assert outcome.message == "Character: 既存キャラ"
        assert ctx.fixtures.character.id == character_id

    @pytest.mark.asyncio
    async def test_detail_without_any_character(self, ctx: CheckContext) -> None:
        with pytest.raises(PreconditionError):
            await characters.check_detail(ctx)

    @pytest.mark.asyncio
    async def test_search_finds_created_character(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.next_character_id = 42
        await characters.check_create(ctx)

        outcome = await characters.check_search_by_tag(ctx)

        assert outcome.passed
        assert "42" in outcome.message

    @pytest.mark.asyncio
    async def test_search_failure_names_id(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.next_character_id = 42
        await characters.check_create(ctx)
        platform.add_character("other", OPERATOR_ID, ["テスト"])
        platform.hidden_from_search.add(42)

        outcome = await characters.check_search_by_tag(ctx)

        assert not outcome.passed
        assert "42" in outcome.message

    @pytest.mark.asyncio
    async def test_search_empty_result_names_id(self, ctx: CheckContext, platform: FakePlatform) -> None:
        ctx.fixtures.adopt_character(TestCharacterFixture(id=42))

        outcome = await characters.check_search_by_tag(ctx)

        assert not outcome.passed
        assert "42" in outcome.message

    @pytest.mark.asyncio
    async def test_search_without_target(self, ctx: CheckContext) -> None:
        with pytest.raises(PreconditionError):
            await characters.check_search_by_tag(ctx)


class TestChatChecks:
    @pytest.mark.asyncio
    async def test_create_then_send(self, ctx: CheckContext, platform: FakePlatform) -> None:
        ctx.fixtures.adopt_character(TestCharacterFixture(id=platform.add_character("a", OPERATOR_ID)))

        created = await chat.check_create(ctx)
        sent = await chat.check_send_message(ctx)

        assert created.passed
        assert sent.passed
        assert platform.chats[ctx.fixtures.chat_id]["messages"] == ["テストメッセージ"]

    @pytest.mark.asyncio
    async def test_send_uses_chat_list_without_chat_id(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.chats[5] = {"id": 5, "messages": []}

        outcome = await chat.check_send_message(ctx)

        assert outcome.message == "Message sent to chat 5"

    @pytest.mark.asyncio
    async def test_send_without_any_chat(self, ctx: CheckContext) -> None:
        with pytest.raises(PreconditionError):
            await chat.check_send_message(ctx)

    @pytest.mark.asyncio
    async def test_list_must_be_list(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.fail("GET", "/api/chatlist", 200, {"chats": []})
        with pytest.raises(CheckFailure):
            await chat.check_list(ctx)


class TestSocialChecks:
    @pytest.mark.asyncio
    async def test_profile(self, ctx: CheckContext) -> None:
        outcome = await social.check_profile(ctx)
        assert outcome.message == "Profile: 運営者"

    @pytest.mark.asyncio
    async def test_follow_seeds_partner_when_missing(self, ctx: CheckContext, platform: FakePlatform) -> None:
        outcome = await social.check_follow_toggle(ctx)

        assert outcome.passed
        assert platform.seed_calls == 1
        assert f"User {platform.partner_id}" in outcome.message
        assert platform.follows == set()

    @pytest.mark.asyncio
    async def test_follow_never_targets_operator(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.fail("POST", "/api/admin/test/seed", 500, {"error": "down"})
        ctx.fixtures.adopt_partner(SocialPartnerFixture(user_id=OPERATOR_ID))

        with pytest.raises(PreconditionError):
            await social.check_follow_toggle(ctx)

        assert ("POST", f"/api/profile/{OPERATOR_ID}/follow") not in platform.calls

    @pytest.mark.asyncio
    async def test_like_prefers_partner_character(self, ctx: CheckContext, platform: FakePlatform) -> None:
        partner_character = platform.add_character("p", 99)
        ctx.fixtures.adopt_partner(SocialPartnerFixture(user_id=99, character_id=partner_character))
        ctx.fixtures.adopt_character(TestCharacterFixture(id=platform.add_character("mine", OPERATOR_ID)))

        outcome = await social.check_like(ctx)

        assert outcome.message == f"Character {partner_character}: favorited"

    @pytest.mark.asyncio
    async def test_comment(self, ctx: CheckContext, platform: FakePlatform) -> None:
        character_id = platform.add_character("a", 42)
        ctx.fixtures.adopt_character(TestCharacterFixture(id=character_id))

        outcome = await social.check_comment(ctx)

        assert outcome.passed
        assert platform.comments[0]["content"] == "テストコメント"
        assert platform.comments[0]["character_id"] == character_id

    @pytest.mark.asyncio
    async def test_like_skips_operator_character(self, ctx: CheckContext, platform: FakePlatform) -> None:
        ctx.fixtures.adopt_character(TestCharacterFixture(id=platform.add_character("mine", OPERATOR_ID)))

        outcome = await social.check_like(ctx)

        assert platform.seed_calls == 1
        partner_character = ctx.fixtures.partner.character_id
        assert platform.characters[partner_character]["author_id"] == platform.partner_id
        assert outcome.message == f"Character {partner_character}: favorited"

    @pytest.mark.asyncio
    async def test_like_and_comment_never_target_operator_character(
        self, ctx: CheckContext, platform: FakePlatform
    ) -> None:
        platform.fail("POST", "/api/admin/test/seed", 500, {"error": "down"})
        mine = platform.add_character("mine", OPERATOR_ID)
        ctx.fixtures.adopt_character(TestCharacterFixture(id=mine))

        with pytest.raises(PreconditionError):
            await social.check_like(ctx)
        with pytest.raises(PreconditionError):
            await social.check_comment(ctx)

        assert ("POST", f"/api/characters/{mine}/favorite") not in platform.calls
        assert ("POST", f"/api/characters/{mine}/comments") not in platform.calls
        assert platform.favorites == set()

    @pytest.mark.asyncio
    async def test_like_skips_unreadable_character(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.fail("POST", "/api/admin/test/seed", 500, {"error": "down"})
        ctx.fixtures.adopt_character(TestCharacterFixture(id=4040))

        with pytest.raises(PreconditionError):
            await social.check_like(ctx)

        assert ("POST", "/api/characters/4040/favorite") not in platform.calls


class TestNotificationChecks:
    @pytest.mark.asyncio
    async def test_mark_read_seeds_empty_inbox_once(self, ctx: CheckContext, platform: FakePlatform) -> None:
        outcome = await notifications.check_mark_read(ctx)

        assert outcome.passed
        assert platform.seed_calls == 1
        assert all(n["read"] for n in platform.notifications)

    @pytest.mark.asyncio
    async def test_mark_read_fails_when_still_empty(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.fail("POST", "/api/admin/test/seed", 500, {"error": "down"})

        outcome = await notifications.check_mark_read(ctx)

        assert not outcome.passed
        assert platform.seed_calls == 0
        assert platform.count("POST", "/api/admin/test/seed") == 1

    @pytest.mark.asyncio
    async def test_mark_read_rejects_unusable_id(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.notifications.append({"id": "abc", "actor_id": 9, "read": False})

        outcome = await notifications.check_mark_read(ctx)

        assert not outcome.passed
        assert outcome.message == "Newest notification has no usable id: 'abc'"
        assert platform.count("PUT", "/api/notifications/read") == 0
        assert platform.notifications[0]["read"] is False

    @pytest.mark.asyncio
    async def test_unread_count(self, ctx: CheckContext) -> None:
        outcome = await notifications.check_unread_count(ctx)
        assert outcome.message == "Unread: 0"


class TestOtherChecks:
    @pytest.mark.asyncio
    async def test_search_by_name(self, ctx: CheckContext, platform: FakePlatform) -> None:
        character_id = platform.add_character("ユニーク名", OPERATOR_ID)
        ctx.fixtures.adopt_character(TestCharacterFixture(id=character_id))

        outcome = await misc.check_search_by_name(ctx)

        assert outcome.passed
        assert "'ユニーク名'" in outcome.message

    @pytest.mark.asyncio
    async def test_persona_create_then_delete(self, ctx: CheckContext, platform: FakePlatform) -> None:
        created = await misc.check_persona_create(ctx)
        persona_id = ctx.fixtures.persona_id
        deleted = await misc.check_persona_delete(ctx)

        assert created.passed and deleted.passed
        assert persona_id is not None
        assert ctx.fixtures.persona_id is None
        assert platform.personas == {}

    @pytest.mark.asyncio
    async def test_persona_delete_without_create_makes_no_call(
        self, ctx: CheckContext, platform: FakePlatform
    ) -> None:
        with pytest.raises(PreconditionError):
            await misc.check_persona_delete(ctx)
        assert platform.calls == []

    @pytest.mark.asyncio
    async def test_persona_list(self, ctx: CheckContext) -> None:
        outcome = await misc.check_persona_list(ctx)
        assert outcome.message == "0 personas"


class TestRequire:
    @pytest.mark.asyncio
    async def test_error_carries_request_and_response(self, ctx: CheckContext, platform: FakePlatform) -> None:
        platform.fail("GET", "/api/ranking", 503, {"error": "maintenance"})

        with pytest.raises(CheckFailure) as exc_info:
            await misc.check_ranking(ctx)

        error = exc_info.value
        assert error.error_code is ErrorCode.CHECK_FAILED
        assert error.context.request == {"method": "GET", "url": f"{BASE_URL}/api/ranking"}
        assert error.context.response == {"status": 503, "body": {"error": "maintenance"}}

    def test_no_response_is_transport_failure(self) -> None:
        result = ApiResult.from_error(ApiRequest("GET", f"{BASE_URL}/api/ranking"), "Connection refused")

        with pytest.raises(CheckFailure) as exc_info:
            require(result, "Ranking unavailable")

        assert exc_info.value.error_code is ErrorCode.TRANSPORT_FAILED
        assert str(exc_info.value) == "Connection refused"
        assert exc_info.value.context.response is None
