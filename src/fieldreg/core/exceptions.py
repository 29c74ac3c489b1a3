"""Custom exceptions for fieldreg."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import ValidationIssue


class FieldRegError(Exception):
    """Base exception for all fieldreg errors."""

    pass


class ConfigError(FieldRegError):
    """Configuration value is invalid."""

    pass


class TaxonomyError(FieldRegError):
    """Taxonomy tree is malformed or has duplicate leaf labels."""

    pass


class RegistryLoadError(FieldRegError):
    """Definitions file could not be read or parsed."""

    def __init__(self, path: str, reason: str):
        """Initialize exception with the offending path.

        Args:
            path: Path of the file that failed to load.
            reason: Human-readable failure reason.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load {path}: {reason}")


class RegistryValidationError(FieldRegError):
    """Strict-mode load aborted because validation found issues."""

    def __init__(self, issues: list["ValidationIssue"]):
        """Initialize exception with the accumulated issues.

        Args:
            issues: Every issue found during load and validation.
        """
        self.issues = list(issues)
        preview = "; ".join(str(issue) for issue in self.issues[:3])
        more = f" (+{len(self.issues) - 3} more)" if len(self.issues) > 3 else ""
        super().__init__(
            f"Registry validation failed with {len(self.issues)} issue(s): {preview}{more}"
        )
