"""Error taxonomy for the data provider authorization path.

Every failure raised out of the authorizer, the assembler, the tenant
resolver or the widget DAO is a ``DataProviderError`` tagged with an
``ErrorKind``. Callers branch on ``exc.kind``; the message is for humans.

An authorization denial is never an exception: ``authorize`` returns False.
"""

import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    DASHBOARD_LOOKUP = "dashboard_lookup"
    REMOTE_UNAUTHORIZED = "remote_unauthorized"
    REMOTE_UNREACHABLE = "remote_unreachable"
    REMOTE_DECODE = "remote_decode"
    REMOTE_ERROR = "remote_error"
    DATA_INTEGRITY = "data_integrity"
    PERSISTENCE = "persistence"

    @property
    def retryable(self) -> bool:
        """Only transport failures are worth a caller-level retry."""
        return self is ErrorKind.REMOTE_UNREACHABLE


class DataProviderError(Exception):
    """Raised when a data provider request cannot be authorized or assembled."""

    def __init__(self, *, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class PersistenceError(DataProviderError):
    """DDL/DML against the widget metadata table failed."""

    def __init__(self, message: str) -> None:
        super().__init__(kind=ErrorKind.PERSISTENCE, message=message)


# ── Collaborator signals ────────────────────────────────────────────────
# Raised by DashboardMetadataProvider / WidgetMetadataProvider implementations.


class DashboardError(Exception):
    """Dashboard or widget metadata could not be read."""


class UnauthorizedError(DashboardError):
    """The user may not see the requested dashboard."""


class ConfigurationError(Exception):
    """A configuration section could not be read."""
