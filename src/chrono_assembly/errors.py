"""Exception types raised while loading and running an assembly."""

from __future__ import annotations


class AssemblyError(Exception):
    """Base class for assembly errors."""


class ConfigurationError(AssemblyError, ValueError):
    """An invalid mate model, atom model or engine option in a description.

    Raised at load time. An engine is never built from a description that
    produced this error.
    """


class MateConstructionError(AssemblyError, RuntimeError):
    """The constraint factory could not build or initialize a mate joint."""

    def __init__(self, female: str, male: str, reason: str):
        super().__init__(f"Cannot build mate {female} -> {male}: {reason}")
        self.female = female
        self.male = male
        self.reason = reason
