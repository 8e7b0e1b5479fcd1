"""Domain exceptions for SQL Gate.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any


class SqlGateException(Exception):
    """Base exception for all SQL Gate errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. rule, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an HTTP error body."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(SqlGateException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthorizationException(SqlGateException):
    """Raised when the RBAC resolver denies an administrative action (Forbidden)."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize with the denied resource/action and the resolver's reason.

        Args:
            resource: Resource that was requested (e.g. 'role:abc').
            action: Action that was attempted (e.g. 'admin').
            reason: Resolver reason (e.g. 'explicitly denied').
        """
        message = "Permission denied"
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        if reason:
            message = f"{message} ({reason})"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        if reason:
            details["reason"] = reason
        super().__init__(message, "PERMISSION_DENIED", details)


class PolicyViolationException(SqlGateException):
    """Raised when the security check vetoes a statement (Forbidden).

    The message always names the rule that fired; never retried.
    """

    def __init__(
        self,
        reason: str,
        rule: str,
        matched_policies: list[dict[str, Any]] | None = None,
        risk_score: int = 0,
    ) -> None:
        super().__init__(
            reason,
            "POLICY_VIOLATION",
            {
                "rule": rule,
                "risk_score": risk_score,
                "matched_policies": matched_policies or [],
            },
        )


class ResourceNotFoundException(SqlGateException):
    """Raised when a referenced connection, role, policy or grant does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class QueryExecutionException(SqlGateException):
    """Raised when the target database rejects a statement.

    message is the user-facing hint; details carry the untranslated driver
    message so operators can still see what the driver said.
    """

    def __init__(self, message: str, original_message: str, connection_id: str) -> None:
        super().__init__(
            message,
            "QUERY_EXECUTION_ERROR",
            {"original_message": original_message, "connection_id": connection_id},
        )


class SecurityCheckUnavailableException(SqlGateException):
    """Raised when settings/policies cannot be read and the gate is configured to fail closed."""

    def __init__(self) -> None:
        super().__init__(
            "Query security check is unavailable; query was not executed.",
            "SECURITY_CHECK_UNAVAILABLE",
        )


class SqlNotConfiguredException(SqlGateException):
    """Raised when an operation needs the policy store but DATABASE_URL is not configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires the policy database, which is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
