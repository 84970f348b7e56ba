"""Pytest fixtures for selftest tests.

FakePlatform is an in-memory stand-in for the platform's HTTP API, served
to ApiClient through httpx.MockTransport. It enforces the CSRF header on
mutating calls and keeps enough state for whole runs to pass end to end.
"""

from __future__ import annotations

import json
import logging
import random
import re
from collections.abc import Iterator
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from selftest.adapters.http import CSRF_HEADER, ApiClient
from selftest.config import SelfTestConfig
from selftest.core.check import CheckContext
from selftest.core.fixtures import FixtureStore
from selftest.provisioning import FixtureProvisioner, SpecGenerator
from selftest.session import SelfTestSession

BASE_URL = "http://platform.test"
OPERATOR_ID = 1
OPERATOR_EMAIL = "admin@example.com"
OPERATOR_PASSWORD = "admin-pass"
ALREADY_ATTENDED = "本日は既に出席済みです。"


class FakePlatform:
    """Mock platform API for testing."""

    def __init__(self) -> None:
        self.signed_in = True
        self.csrf = "csrf-1"
        self.calls: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], tuple[int, Any]] = {}
        self.generation_fails_at: str | None = None
        self.hidden_from_search: set[int] = set()

        self.users: dict[int, dict[str, Any]] = {
            OPERATOR_ID: {"id": OPERATOR_ID, "email": OPERATOR_EMAIL, "nickname": "運営者", "test": False},
        }
        self.characters: dict[int, dict[str, Any]] = {}
        self.chats: dict[int, dict[str, Any]] = {}
        self.notifications: list[dict[str, Any]] = []
        self.personas: dict[int, dict[str, Any]] = {}
        self.follows: set[tuple[int, int]] = set()
        self.favorites: set[tuple[int, int]] = set()
        self.comments: list[dict[str, Any]] = []
        self.analyze_payloads: list[Any] = []

        self.free_points = 500
        self.paid_points = 0
        self.attended_today = False
        self.partner_id: int | None = None
        self.seed_calls = 0

        self._next_user_id = 2
        self.next_character_id = 100
        self._next_id = 1000

    # -- helpers for tests ---------------------------------------------------

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def fail(self, method: str, path: str, status: int, body: Any) -> None:
        self.failures[(method, path)] = (status, body)

    def rotate_csrf(self) -> None:
        self.csrf = self.csrf + "x"

    def add_character(self, name: str, author_id: int, hashtags: list[str] | None = None) -> int:
        character_id = self.next_character_id
        self.next_character_id += 1
        self.characters[character_id] = {
            "id": character_id,
            "name": name,
            "description": "",
            "author_id": author_id,
            "hashtags": hashtags or [],
        }
        return character_id

    def count(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call == (method, path))

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    # -- transport -----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))
        self.requests.append(request)

        if (method, path) in self.failures:
            status, body = self.failures[(method, path)]
            if isinstance(body, str):
                return httpx.Response(status, text=body, headers={"content-type": "text/html"})
            return httpx.Response(status, json=body)

        if path.startswith("/api/auth/"):
            return self._auth(request, method, path)
        if path == "/api/csrf-token":
            return httpx.Response(200, json={"csrfToken": self.csrf})

        if method != "GET" and request.headers.get(CSRF_HEADER) != self.csrf:
            return httpx.Response(403, json={"error": "Invalid CSRF token"})
        if not self.signed_in and path != "/api/register":
            return httpx.Response(401, json={"error": "認証されていません。"})

        body = json.loads(request.content) if request.content else {}
        return self._route(request, method, path, body)

    def _auth(self, request: httpx.Request, method: str, path: str) -> httpx.Response:
        if path == "/api/auth/session":
            if not self.signed_in:
                return httpx.Response(200, json={})
            return httpx.Response(
                200, json={"user": {"id": str(OPERATOR_ID), "name": "Operator", "email": OPERATOR_EMAIL}}
            )
        if path == "/api/auth/csrf":
            return httpx.Response(200, json={"csrfToken": "provider-token"})
        if path == "/api/auth/callback/credentials" and method == "POST":
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            if (
                form.get("csrfToken") == "provider-token"
                and form.get("email") == OPERATOR_EMAIL
                and form.get("password") == OPERATOR_PASSWORD
            ):
                self.signed_in = True
                return httpx.Response(200, json={"url": BASE_URL})
            return httpx.Response(
                401, json={"url": f"{BASE_URL}/api/auth/error?error=CredentialsSignin"}
            )
        return httpx.Response(404, json={"error": "not found"})

    def _route(self, request: httpx.Request, method: str, path: str, body: Any) -> httpx.Response:
        if (method, path) == ("POST", "/api/register"):
            return self._register(body)

        if path.startswith("/api/characters/generate-"):
            return self._generate(path.rsplit("-", 1)[1], body)

        if (method, path) == ("POST", "/api/characters"):
            author = int(body.get("userId") or OPERATOR_ID)
            character_id = self.add_character(body["name"], author, list(body.get("hashtags") or []))
            self.characters[character_id]["description"] = body.get("description", "")
            return httpx.Response(201, json={"character": {"id": character_id}})

        if (method, path) == ("GET", "/api/charlist"):
            listed = sorted(self.characters.values(), key=lambda c: -c["id"])
            return httpx.Response(200, json={"characters": listed, "tags": []})

        match = re.fullmatch(r"/api/characters/(\d+)(?:/(favorite|comments))?", path)
        if match:
            return self._character(method, int(match.group(1)), match.group(2), body)

        if path == "/api/search":
            query = request.url.params.get("query", "")
            found = [
                c
                for c in self.characters.values()
                if c["id"] not in self.hidden_from_search
                and (query in c["hashtags"] or query in c["name"] or query in c["description"])
            ]
            return httpx.Response(200, json=found)

        if path == "/api/points":
            return self._points(method, body)

        if (method, path) == ("GET", "/api/chatlist"):
            return httpx.Response(200, json=[{"id": i} for i in sorted(self.chats, reverse=True)])
        if (method, path) == ("POST", "/api/chat/new"):
            if int(body.get("characterId", 0)) not in self.characters:
                return httpx.Response(404, json={"error": "キャラクターが見つかりません。"})
            chat_id = self._id()
            self.chats[chat_id] = {"id": chat_id, "messages": []}
            return httpx.Response(200, json={"chatId": chat_id})
        match = re.fullmatch(r"/api/chat/(\d+)", path)
        if match and method == "POST":
            chat = self.chats.get(int(match.group(1)))
            if chat is None:
                return httpx.Response(404, json={"error": "チャットが見つかりません。"})
            chat["messages"].append(body.get("message"))
            return httpx.Response(200, text="ok", headers={"content-type": "text/plain"})

        if path.startswith("/api/notifications"):
            return self._notifications(method, path, body)

        match = re.fullmatch(r"/api/profile/(\d+)(/follow)?", path)
        if match:
            return self._profile(method, int(match.group(1)), bool(match.group(2)))

        if (method, path) == ("GET", "/api/ranking"):
            return httpx.Response(200, json={"ranking": []})

        if path == "/api/persona" or path.startswith("/api/persona/"):
            return self._persona(method, path, body)

        if (method, path) == ("POST", "/api/admin/test/seed"):
            return self._seed()
        if (method, path) == ("DELETE", "/api/admin/test/cleanup"):
            return self._cleanup()
        if (method, path) == ("POST", "/api/admin/test/analyze"):
            self.analyze_payloads.append(body)
            failed = [r for r in body["results"] if r["status"] == "error"]
            return httpx.Response(200, json={"analysis": f"{len(body['results'])} checks, {len(failed)} failed"})

        return httpx.Response(404, json={"error": f"no route for {method} {path}"})

    def _register(self, body: dict[str, Any]) -> httpx.Response:
        if any(u["email"] == body.get("email") for u in self.users.values()):
            return httpx.Response(400, json={"error": "このメールアドレスは既に使用されています。"})
        user_id = self._next_user_id
        self._next_user_id += 1
        self.users[user_id] = {"id": user_id, "email": body["email"], "nickname": body["nickname"], "test": True}
        return httpx.Response(200, json={"user": {"id": user_id}})

    def _generate(self, stage: str, body: dict[str, Any]) -> httpx.Response:
        if self.generation_fails_at == stage:
            return httpx.Response(500, json={"error": "generation backend unavailable"})
        if stage == "profile":
            return httpx.Response(
                200, json={"name": f"生成キャラ{self.next_character_id}", "description": f"{body['genre']}の物語"}
            )
        if stage == "detail":
            return httpx.Response(200, json={"detailSetting": f"{body['name']}の詳細設定"})
        return httpx.Response(
            200, json={"firstSituation": "放課後の教室", "firstMessage": f"{body['name']}です。"}
        )

    def _character(self, method: str, character_id: int, sub: str | None, body: Any) -> httpx.Response:
        character = self.characters.get(character_id)
        if character is None:
            return httpx.Response(404, json={"error": "キャラクターが見つかりません。"})
        if sub is None:
            return httpx.Response(200, json=character)
        if sub == "favorite":
            key = (OPERATOR_ID, character_id)
            if key in self.favorites:
                self.favorites.remove(key)
            else:
                self.favorites.add(key)
            return httpx.Response(200, json={"isFavorite": key in self.favorites})
        if not body.get("content"):
            return httpx.Response(400, json={"error": "コメントを入力してください。"})
        comment = {"id": self._id(), "character_id": character_id, "content": body["content"]}
        self.comments.append(comment)
        return httpx.Response(201, json=comment)

    def _points(self, method: str, body: dict[str, Any]) -> httpx.Response:
        if method == "GET":
            return httpx.Response(200, json={"free_points": self.free_points, "paid_points": self.paid_points})
        if body.get("action") == "attend":
            if self.attended_today:
                return httpx.Response(400, json={"message": ALREADY_ATTENDED})
            self.attended_today = True
            self.free_points += 30
            return httpx.Response(200, json={"message": "出席チェック完了！30ポイント獲得しました。"})
        if body.get("action") == "charge" and body.get("amount"):
            self.paid_points += int(body["amount"])
            return httpx.Response(200, json={"message": f"{body['amount']}ポイントがチャージされました。"})
        return httpx.Response(400, json={"error": "無効なリクエストです。"})

    def _notifications(self, method: str, path: str, body: Any) -> httpx.Response:
        if (method, path) == ("GET", "/api/notifications"):
            return httpx.Response(200, json={"notifications": list(reversed(self.notifications))})
        if (method, path) == ("GET", "/api/notifications/unread-count"):
            return httpx.Response(200, json={"unreadCount": sum(1 for n in self.notifications if not n["read"])})
        if (method, path) == ("PUT", "/api/notifications/read"):
            ids = set(body.get("notificationIds") or [])
            for notification in self.notifications:
                if notification["id"] in ids:
                    notification["read"] = True
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"error": "not found"})

    def _profile(self, method: str, user_id: int, follow: bool) -> httpx.Response:
        user = self.users.get(user_id)
        if user is None:
            return httpx.Response(404, json={"error": "ユーザーが見つかりません。"})
        if not follow:
            return httpx.Response(200, json={"id": user_id, "nickname": user["nickname"]})
        if user_id == OPERATOR_ID:
            return httpx.Response(400, json={"error": "自分自身はフォローできません。"})
        key = (OPERATOR_ID, user_id)
        if key in self.follows:
            self.follows.remove(key)
        else:
            self.follows.add(key)
        return httpx.Response(200, json={"isFollowing": key in self.follows})

    def _persona(self, method: str, path: str, body: Any) -> httpx.Response:
        if (method, path) == ("GET", "/api/persona"):
            return httpx.Response(200, json={"personas": list(self.personas.values())})
        if (method, path) == ("POST", "/api/persona"):
            if not body.get("nickname") or not body.get("description"):
                return httpx.Response(400, json={"error": "ニックネームと詳細情報は必須です。"})
            persona_id = self._id()
            self.personas[persona_id] = {"id": persona_id, **body}
            return httpx.Response(201, json=self.personas[persona_id])
        match = re.fullmatch(r"/api/persona/(\d+)", path)
        if match and method == "DELETE":
            if self.personas.pop(int(match.group(1)), None) is None:
                return httpx.Response(404, json={"error": "ペルソナが見つからないか、権限がありません。"})
            return httpx.Response(200, json={"message": "ペルソナが削除されました。"})
        return httpx.Response(404, json={"error": "not found"})

    def _seed(self) -> httpx.Response:
        self.seed_calls += 1
        created = 0
        if self.partner_id is None:
            self.partner_id = self._next_user_id
            self._next_user_id += 1
            self.users[self.partner_id] = {
                "id": self.partner_id,
                "email": "partner@test.com",
                "nickname": "テストパートナー",
                "test": True,
            }
            self.add_character("パートナーキャラ", self.partner_id, ["テスト"])
        partner_character = next(c["id"] for c in self.characters.values() if c["author_id"] == self.partner_id)
        if not any(n["actor_id"] == self.partner_id for n in self.notifications):
            self.notifications.append({"id": self._id(), "actor_id": self.partner_id, "read": False})
            created = 1
        own = [c["id"] for c in self.characters.values() if c["author_id"] == OPERATOR_ID]
        return httpx.Response(
            200,
            json={
                "message": "seeded",
                "partnerUser": {"id": self.partner_id, "nickname": "テストパートナー", "email": "partner@test.com"},
                "partnerCharacterId": partner_character,
                "targetCharacterId": own[0] if own else None,
                "followCreated": False,
                "favoriteCreated": False,
                "commentId": None,
                "notificationsCreated": created,
            },
        )

    def _cleanup(self) -> httpx.Response:
        test_users = [uid for uid, u in self.users.items() if u["test"]]
        characters = [cid for cid, c in self.characters.items() if c["author_id"] in test_users]
        for uid in test_users:
            del self.users[uid]
        for cid in characters:
            del self.characters[cid]
        chats = len(self.chats)
        self.chats.clear()
        self.partner_id = None
        return httpx.Response(
            200,
            json={
                "message": "テストデータを削除しました。",
                "deleted": {"users": len(test_users), "characters": len(characters), "chats": chats},
            },
        )


@pytest.fixture(autouse=True)
def restore_selftest_logger() -> Iterator[None]:
    """Undo configure_logging() calls made by a test."""
    logger = logging.getLogger("selftest")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def config() -> SelfTestConfig:
    return SelfTestConfig(base_url=BASE_URL, cooldown_seconds=0)


@pytest.fixture
def api(platform: FakePlatform) -> ApiClient:
    return ApiClient(BASE_URL, transport=platform.transport)


@pytest.fixture
def fixtures() -> FixtureStore:
    return FixtureStore()


@pytest.fixture
def provisioner(api: ApiClient, fixtures: FixtureStore, config: SelfTestConfig) -> FixtureProvisioner:
    return FixtureProvisioner(
        api,
        fixtures,
        config,
        spec_generator=SpecGenerator(api, tag=config.discovery_tag),
        clock=lambda: 1_700_000_000.5,
        rng=random.Random(7),
    )


@pytest.fixture
def ctx(api: ApiClient, fixtures: FixtureStore, provisioner: FixtureProvisioner, config: SelfTestConfig) -> CheckContext:
    return CheckContext(api=api, fixtures=fixtures, provisioner=provisioner, config=config)


@pytest.fixture
def session(platform: FakePlatform, config: SelfTestConfig) -> SelfTestSession:
    return SelfTestSession.from_config(config, transport=platform.transport)
