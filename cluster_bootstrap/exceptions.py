"""Custom exceptions for the cluster bootstrap orchestrator."""


class ClusterBootstrapError(Exception):
    """Base exception for all cluster bootstrap errors."""

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class RemoteExecutionError(ClusterBootstrapError):
    """Exception raised when a command fails on a managed node."""

    def __init__(
        self,
        message: str,
        details: str = None,
        node: str | None = None,
        exit_status: int | None = None,
    ):
        self.node = node
        self.exit_status = exit_status
        super().__init__(message, details)


class StageFailedError(RemoteExecutionError):
    """Exception raised when one or more nodes of a deployment stage failed."""

    def __init__(self, stage: str, failures: dict[str, Exception]):
        """Initialize the exception.

        Args:
            stage: Name of the stage that failed
            failures: Mapping of node name to the error raised for that node
        """
        self.stage = stage
        self.failures = failures
        nodes = ", ".join(failures)
        details = "\n".join(f"{name}: {error}" for name, error in failures.items())
        super().__init__(
            f"Stage '{stage}' failed on {len(failures)} node(s): {nodes}",
            details,
            node=next(iter(failures), None),
        )


class LocalCommandError(ClusterBootstrapError):
    """Exception raised when a local cluster-management command fails."""

    pass


class UnknownVersionError(ClusterBootstrapError):
    """Exception raised when a version is missing from the release catalog."""

    def __init__(self, version: str, details: str = None):
        self.version = version
        super().__init__(f"Version '{version}' not found in the k3s release catalog", details)


class TopologyError(ClusterBootstrapError):
    """Exception raised when the node topology is inconsistent."""

    pass


class TokenRetrievalFailure(ClusterBootstrapError):
    """Exception raised when no join token can be read from the primary master.

    Always recovered locally by generating a fresh token.
    """

    pass


class ReleaseCatalogError(ClusterBootstrapError):
    """Exception raised when the k3s release catalog cannot be fetched."""

    pass


class ConfigurationError(ClusterBootstrapError):
    """Exception raised for configuration errors."""

    pass
