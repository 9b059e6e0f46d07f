"""Custom exceptions for pgsearch."""

from sqlalchemy.exc import DBAPIError

# Errors raised by Postgres are propagated unchanged. Callers that want to
# branch on them can catch this alias.
BackendError = DBAPIError


class PgSearchError(RuntimeError):
    """Base class for pgsearch errors."""


class InvalidArgumentError(PgSearchError):
    """Error for invalid arguments."""


class QueryValidationError(InvalidArgumentError):
    """Error when a search query cannot be executed by this backend."""


class SchemaValidationError(InvalidArgumentError):
    """Error when an index schema is invalid."""


class DocumentValidationError(InvalidArgumentError):
    """Error when a document or patch is missing its primary key."""

    def __init__(self, field_name: str, kind: str = "Document") -> None:
        """Initialize with the name of the missing primary-key field."""
        self.field_name = field_name
        super().__init__(f'{kind} missing string field "{field_name}"')


class FilterParseError(InvalidArgumentError, ValueError):
    """Raised when a filter mapping is malformed."""


class ResourceNotFoundError(InvalidArgumentError):
    """Error when a specified resource is not found."""


class IndexNotBoundError(ResourceNotFoundError):
    """Error when an index id is not registered with the search index."""

    def __init__(self, index_id: str) -> None:
        """Initialize with the id of the unbound index."""
        self.index_id = index_id
        super().__init__(f'Index "{index_id}" not bound')

    def __repr__(self) -> str:
        """Return a helpful debug representation."""
        return f"IndexNotBoundError('{self.index_id}')"
