"""Onboarding error hierarchy."""

from __future__ import annotations


class OnboardingError(Exception):
    """Base class for every error raised by the onboarding core."""


class UnknownCategory(OnboardingError):
    """A value outside the closed GoalCategory enum reached the catalog or factory.

    Internal-consistency failure; unreachable when callers go through GoalCategory.
    """

    def __init__(self, category: object):
        super().__init__(f"Unknown goal category: {category!r}")
        self.category = category


class ConfigurationMismatch(OnboardingError):
    """The factory was handed a configuration that does not belong to the category."""


class ConfigurationInvalid(OnboardingError):
    """A setup-form payload failed validation and was rejected before finalization."""

    def __init__(self, category: str, errors: list[dict]):
        super().__init__(f"Invalid configuration for {category}")
        self.category = category
        self.errors = errors


class InvalidTransition(OnboardingError):
    """An event arrived that the current onboarding state cannot accept."""


class GoalPersistenceError(OnboardingError):
    """The persistence gateway failed to store a goal. Recoverable by retrying."""
