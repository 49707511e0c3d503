"""
Error taxonomy for the table admin service.

The HTTP layer maps these onto status codes: InvalidArgument becomes a 400,
DatabaseError (and UnsupportedBackend) becomes a 500.
"""


class TableAdminError(Exception):
    """
    Base class for all errors raised by the table admin service.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidArgument(TableAdminError):
    """
    Raised when a request is malformed: a missing table name, an empty
    condition or update map, an empty bulk payload, or a column that the
    table does not have. No statement reaches the backend.
    """
    pass


class DatabaseError(TableAdminError):
    """
    Raised when the relational backend rejects or fails a statement.
    The message carries the raw backend error text.
    """
    pass


class UnsupportedBackend(DatabaseError):
    """
    Raised when the configured database type is none of the supported engines.
    """
    pass
