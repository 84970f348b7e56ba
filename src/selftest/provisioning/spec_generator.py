"""Character content spec generation.

The platform generates character content in three chained stages:

    profile (name, description)
      -> detail (detailSetting)
        -> opening situation (firstSituation, firstMessage)

Each stage consumes the previous stage's output. If any stage fails or
returns a payload missing a required field, the whole chain is abandoned
and a fixed fallback spec is used instead, so downstream checks always have
a searchable, tagged character to work with.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from selftest.config import CANONICAL_TAG

if TYPE_CHECKING:
    from selftest.adapters.http import ApiClient

logger = logging.getLogger(__name__)

# Genre categories accepted by the platform's character catalog.
CHARACTER_CATEGORIES = (
    "シミュレーション",
    "ロマンス",
    "ファンタジー/SF",
    "ドラマ",
    "武侠/時代劇",
    "GL",
    "BL",
    "ホラー/ミステリー",
    "アクション",
    "コメディ/日常",
    "スポーツ/学園",
    "その他",
)

FALLBACK_NAME = "セルフテスト・キャラクター"
FALLBACK_DESCRIPTION = (
    "自動セルフテスト用のキャラクターです。検索・チャット・ソーシャル機能の確認に使用されます。"
)
FALLBACK_DETAIL = (
    "セルフテスト・キャラクターは動作確認のために作られた案内役です。"
    "丁寧な口調で、質問には短く正確に答えます。"
)
FALLBACK_SITUATION = "テスト環境のロビーで、セルフテスト・キャラクターが確認作業を待っている。"
FALLBACK_MESSAGE = "こんにちは、セルフテスト・キャラクターです。確認を始めましょう。"


class _Stage(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class ProfileStage(_Stage):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)


class DetailStage(_Stage):
    detailSetting: str = Field(min_length=1)


class SituationStage(_Stage):
    firstSituation: str = Field(min_length=1)
    firstMessage: str = Field(min_length=1)


class CharacterSpec(BaseModel):
    """Content for a character create call."""

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    detail_setting: str = Field(min_length=1)
    first_situation: str = Field(min_length=1)
    first_message: str = Field(min_length=1)
    category: str
    hashtags: list[str]
    generated: bool = True

    def to_payload(self, **extra: Any) -> dict[str, Any]:
        """Body for ``POST /api/characters``."""
        payload = {
            "name": self.name,
            "description": self.description,
            "detailSetting": self.detail_setting,
            "firstSituation": self.first_situation,
            "firstMessage": self.first_message,
            "visibility": "public",
            "safetyFilter": True,
            "category": self.category,
            "hashtags": list(self.hashtags),
            "images": [],
        }
        payload.update(extra)
        return payload


class StageFailed(Exception):
    """One generation stage failed; the chain is abandoned."""


def random_category(rng: random.Random | None = None) -> str:
    return (rng or random).choice(CHARACTER_CATEGORIES)


def fallback_spec(category: str, tag: str = CANONICAL_TAG) -> CharacterSpec:
    """Deterministic spec used whenever generation is unavailable."""
    return CharacterSpec(
        name=FALLBACK_NAME,
        description=f"{FALLBACK_DESCRIPTION} #{tag}",
        detail_setting=FALLBACK_DETAIL,
        first_situation=FALLBACK_SITUATION,
        first_message=FALLBACK_MESSAGE,
        category=category,
        hashtags=_hashtags(tag, category),
        generated=False,
    )


def _hashtags(tag: str, category: str) -> list[str]:
    tags = [tag]
    if category and category != tag:
        tags.append(category)
    return tags


class SpecGenerator:
    """Runs the profile -> detail -> situation chain against the platform."""

    def __init__(self, api: ApiClient, tag: str = CANONICAL_TAG) -> None:
        self.api = api
        self.tag = tag

    async def generate(self, category: str | None = None) -> CharacterSpec:
        """Generate a character spec, or the fallback spec if any stage fails."""
        category = category or random_category()
        try:
            profile = await self._stage(
                "/api/characters/generate-profile",
                {"genre": category, "characterType": "テスト用キャラクター"},
                ProfileStage,
            )
            detail = await self._stage(
                "/api/characters/generate-detail",
                {"name": profile.name, "description": profile.description},
                DetailStage,
            )
            situation = await self._stage(
                "/api/characters/generate-situation",
                {
                    "name": profile.name,
                    "description": profile.description,
                    "detailSetting": detail.detailSetting,
                },
                SituationStage,
            )
        except StageFailed as e:
            logger.warning("Character generation abandoned (%s); using fallback spec", e)
            return fallback_spec(category, self.tag)

        return CharacterSpec(
            name=profile.name,
            description=profile.description,
            detail_setting=detail.detailSetting,
            first_situation=situation.firstSituation,
            first_message=situation.firstMessage,
            category=category,
            hashtags=_hashtags(self.tag, category),
        )

    async def _stage(self, path: str, body: dict[str, Any], model: type[_Stage]) -> Any:
        result = await self.api.post(path, json=body)
        if not result.ok:
            raise StageFailed(f"{path}: {result.error_message(f'HTTP {result.status_code}')}")
        payload = result.json()
        if not isinstance(payload, dict):
            raise StageFailed(f"{path}: unexpected payload {type(payload).__name__}")
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            missing = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise StageFailed(f"{path}: invalid payload ({missing})") from e
