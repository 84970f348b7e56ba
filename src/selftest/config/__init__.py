"""Configuration for the self-test engine."""

from selftest.config.settings import CANONICAL_TAG, SelfTestConfig, load_config

__all__ = ["CANONICAL_TAG", "SelfTestConfig", "load_config"]
