"""Fixture provisioning and character spec generation."""

from selftest.provisioning.outcome import OutcomeKind, ProvisionOutcome, best_effort
from selftest.provisioning.provisioner import FixtureProvisioner, ProvisionedEnvironment
from selftest.provisioning.spec_generator import (
    CHARACTER_CATEGORIES,
    CharacterSpec,
    SpecGenerator,
    fallback_spec,
    random_category,
)

__all__ = [
    "CHARACTER_CATEGORIES",
    "CharacterSpec",
    "FixtureProvisioner",
    "OutcomeKind",
    "ProvisionOutcome",
    "ProvisionedEnvironment",
    "SpecGenerator",
    "best_effort",
    "fallback_spec",
    "random_category",
]
