"""
Exception types raised while compiling a workflow policy.

Extractors never raise; everything here is raised by validation passes or by
the compiler when an extracted configuration has to fail closed.
"""

from __future__ import annotations

from typing import Any


class PolicyError(Exception):
    """Base exception for workflow policy compile failures."""

    pass


class ValidationError(PolicyError):
    """Raised when a configuration value fails a validation rule.

    Carries the offending configuration path, the observed value, a
    human-readable reason and a suggested remediation.
    """

    def __init__(self, field: str, value: Any, reason: str, suggestion: str = ""):
        self.field = field
        self.value = value
        self.reason = reason
        self.suggestion = suggestion
        message = f"invalid {field}: {value}. {reason}"
        if suggestion:
            message = f"{message}\n\n{suggestion}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "value": self.value,
            "reason": self.reason,
            "suggestion": self.suggestion,
        }


class StrictModeError(ValidationError):
    """Raised by the strict-mode validator.

    The rendered message is the reason itself so it always starts with
    ``strict mode:`` (or ``internal error:``).
    """

    def __init__(self, field: str, value: Any, reason: str, suggestion: str = ""):
        super().__init__(field, value, reason, suggestion)
        self.args = (reason,)

    def __str__(self) -> str:
        return self.reason


class SafeOutputConfigError(PolicyError):
    """Raised when a configured safe-output action was rejected at extraction."""

    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"safe-outputs.{action}: {reason}")


class NetworkSupportError(PolicyError):
    """Raised when an engine cannot enforce the declared network restrictions."""

    def __init__(self, engine_id: str, message: str):
        self.engine_id = engine_id
        super().__init__(message)


__all__ = [
    "NetworkSupportError",
    "PolicyError",
    "SafeOutputConfigError",
    "StrictModeError",
    "ValidationError",
]
