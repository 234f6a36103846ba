"""Custom exception hierarchy for ReadSpace.

All application-specific exceptions inherit from ReadSpaceError,
allowing callers to catch broad or narrow as needed.
"""


class ReadSpaceError(Exception):
    """Base exception for all ReadSpace errors."""


class NotFoundError(ReadSpaceError):
    """Unknown project, tree path or file reference."""


class ValidationFailedError(ReadSpaceError):
    """Empty or whitespace-only name input."""


class DuplicateMembershipError(ReadSpaceError):
    """File is already part of the target project's tree."""


class MalformedImportError(ReadSpaceError):
    """Import document could not be parsed or holds no files and no projects."""


class PersistenceError(ReadSpaceError):
    """Key-value store read or write failure."""


class SettingsError(ReadSpaceError):
    """Invalid settings or configuration."""
