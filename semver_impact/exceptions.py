"""Exception hierarchy for semver-impact.

Malformed input data (bad declaration trees, unparseable rules) is reported
through result values and ``errors`` lists. These exceptions are raised for
invariant violations and for files that cannot be loaded at all.
"""

from __future__ import annotations

from typing import Optional


class SemverImpactError(Exception):
    """Base exception for all semver-impact errors."""

    def __init__(self, message: str, details: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidDescriptorError(SemverImpactError, ValueError):
    """Raised when a change descriptor violates the action/aspect/impact contract."""


class PolicyLoadError(SemverImpactError, ValueError):
    """Raised when a policy file cannot be read or lacks required fields."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Cannot load policy: {source}", details={"source": source, "reason": reason})
        self.source = source
        self.reason = reason


class ModuleLoadError(SemverImpactError, ValueError):
    """Raised when a module analysis document cannot be read."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Cannot load module analysis: {source}", details={"source": source, "reason": reason})
        self.source = source
        self.reason = reason
