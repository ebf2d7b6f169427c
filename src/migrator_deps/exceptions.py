"""Custom exceptions for Migrator Deps."""


class MigratorDepsError(Exception):
    """Base exception for Migrator Deps."""


class ApiError(MigratorDepsError):
    """Raised when the migrator API cannot be reached or returns an error.

    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RepositoryNotFoundError(MigratorDepsError):
    """Raised when a repository is not tracked in the store."""


class ExportFormatError(MigratorDepsError):
    """Raised when an unsupported export format is requested."""
