"""Custom exception hierarchy for dcdeploy configuration and deployments."""

from __future__ import annotations


class DcDeployError(Exception):
    """Base exception for all dcdeploy errors.

    All dcdeploy-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(DcDeployError):
    """Exception raised for configuration errors.

    Attributes:
        field: The configuration field (or file) that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class ConfigLoadError(ConfigError):
    """Exception raised when a datacenter config source cannot be loaded.

    Any malformed source aborts the whole load; no partially populated
    deployment configuration is ever returned.

    Attributes:
        path: Path of the config source that failed
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize ConfigLoadError with the failing path and message."""
        self.path = path
        super().__init__(field=path, message=message)


class ConfigNotFoundError(ConfigError):
    """Exception raised when a service has no job file or datacenter entry."""

    def __init__(self, service: str, message: str) -> None:
        """Initialize ConfigNotFoundError for a service."""
        self.service = service
        super().__init__(field=service, message=message)


class SchedulerAPIError(DcDeployError):
    """Exception raised by the scheduler client on transport or HTTP failure.

    Attributes:
        message: Error text returned by the scheduler (or the transport error)
        status_code: HTTP status code, or None for transport failures
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Create a scheduler API error."""
        self.message = message
        self.status_code = status_code
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"Unexpected response code: {status_code} ({message})")


class DeploymentError(DcDeployError):
    """Exception raised when a deployment pipeline step fails.

    Attributes:
        operation: Pipeline step that failed (connect, validate, plan, ...)
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Create a deployment error for the given operation."""
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class SchedulerConnectionError(DeploymentError):
    """Raised when the scheduler cannot be reached."""

    def __init__(self, message: str) -> None:
        """Create a connection error."""
        super().__init__(operation="connect", message=message)


class JobValidationError(DeploymentError):
    """Raised when the scheduler rejects the merged job."""

    def __init__(self, message: str) -> None:
        """Create a job validation error."""
        super().__init__(operation="validate", message=message)


class PlanError(DeploymentError):
    """Raised when the dry-run plan fails."""

    def __init__(self, message: str) -> None:
        """Create a plan error."""
        super().__init__(operation="plan", message=message)


class RegisterError(DeploymentError):
    """Raised when registration or the evaluation wait fails."""

    def __init__(self, message: str) -> None:
        """Create a register error."""
        super().__init__(operation="register", message=message)


class DeploymentFailedError(DeploymentError):
    """Raised when a deployment ends in a non-successful terminal status.

    Carries everything needed to diagnose the failure without re-querying
    the scheduler.

    Attributes:
        status: Terminal deployment status (e.g. "failed", "cancelled")
        description: Scheduler status description
        diagnostics: Rendered task event errors from the deployment's allocations
    """

    def __init__(
        self,
        status: str,
        description: str,
        diagnostics: list[str] | None = None,
    ) -> None:
        """Create a deployment failure with status and diagnostics."""
        self.status = status
        self.description = description
        self.diagnostics = list(diagnostics or [])
        message = f"deployment failed status: {status} {description}".rstrip()
        if self.diagnostics:
            message += "\n" + "\n".join(f"  {line}" for line in self.diagnostics)
        super().__init__(operation="status", message=message)


class DeploymentCancelledError(DeploymentError):
    """Raised when a polling loop observes the cancellation token."""

    def __init__(self, operation: str) -> None:
        """Create a cancellation error for the interrupted operation."""
        super().__init__(operation=operation, message="deployment cancelled")
