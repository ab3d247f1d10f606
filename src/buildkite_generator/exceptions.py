class ProvisioningError(Exception):
    """Base class for all errors that abort a provisioning run."""

    pass


class UsageError(ProvisioningError):
    """Raised when a required argument or credential is missing."""

    pass


class PipelineCreationError(ProvisioningError):
    """Raised when Buildkite rejects or fails the pipeline creation call."""

    pass


class BranchProtectionError(ProvisioningError):
    """Raised when the branch protection of the default branch cannot be read."""

    pass


class TemplateDirectoryError(ProvisioningError):
    """Raised when the directory for the pipeline template cannot be created."""

    pass
