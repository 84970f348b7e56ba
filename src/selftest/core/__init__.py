"""Core types: API results, fixtures and checks."""

from selftest.core.check import (
    CategoryDefinition,
    CheckContext,
    CheckDefinition,
    CheckOutcome,
    CheckResult,
    CheckStatus,
)
from selftest.core.fixtures import (
    FixtureStore,
    PointSnapshot,
    SocialPartnerFixture,
    TestCharacterFixture,
    TestUserFixture,
)
from selftest.core.result import ApiRequest, ApiResponse, ApiResult

__all__ = [
    "ApiRequest",
    "ApiResponse",
    "ApiResult",
    "CategoryDefinition",
    "CheckContext",
    "CheckDefinition",
    "CheckOutcome",
    "CheckResult",
    "CheckStatus",
    "FixtureStore",
    "PointSnapshot",
    "SocialPartnerFixture",
    "TestCharacterFixture",
    "TestUserFixture",
]
