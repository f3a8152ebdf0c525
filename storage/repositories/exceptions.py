"""
Repository Layer Exceptions.

============================================================
PURPOSE
============================================================
Defines repository-specific exceptions for proper error handling
and propagation. All database errors must be caught and wrapped
in these exceptions.

============================================================
USAGE
============================================================
Repositories catch SQLAlchemy exceptions and re-raise as
repository exceptions with context. The ledger stores above
them translate "row absent" into their own NotFound errors.

============================================================
"""

from typing import Any, Optional


class RepositoryException(Exception):
    """
    Base exception for all repository operations.
    
    All repository-specific exceptions inherit from this class.
    """
    
    def __init__(
        self,
        message: str,
        repository_name: str,
        operation: str,
        details: Optional[dict] = None
    ) -> None:
        self.message = message
        self.repository_name = repository_name
        self.operation = operation
        self.details = details or {}
        super().__init__(self._format_message())
    
    def _format_message(self) -> str:
        return f"[{self.repository_name}] {self.operation}: {self.message}"


class RecordNotFoundError(RepositoryException):
    """
    Raised when a requested row does not exist.
    
    Use for load operations when the row is expected to exist.
    """
    
    def __init__(
        self,
        repository_name: str,
        record_id: Any,
        id_field: str = "id"
    ) -> None:
        super().__init__(
            message=f"Record with {id_field}={record_id} not found",
            repository_name=repository_name,
            operation="load",
            details={id_field: str(record_id)}
        )
        self.record_id = record_id
        self.id_field = id_field


class ConnectionError(RepositoryException):
    """
    Raised when database connection fails.
    
    Use for connection timeouts, pool exhaustion, etc.
    """
    
    def __init__(
        self,
        repository_name: str,
        operation: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Database connection failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"original_error": original_error}
        )


class QueryError(RepositoryException):
    """
    Raised when a statement fails to execute.
    """
    
    def __init__(
        self,
        repository_name: str,
        operation: str,
        query_description: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Query failed ({query_description}): {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={
                "query_description": query_description,
                "original_error": original_error
            }
        )


class TransactionError(RepositoryException):
    """
    Raised when transaction management fails.
    
    Use for commit failures, rollback issues, etc.
    """
    
    def __init__(
        self,
        repository_name: str,
        operation: str,
        phase: str,
        original_error: str
    ) -> None:
        super().__init__(
            message=f"Transaction {phase} failed: {original_error}",
            repository_name=repository_name,
            operation=operation,
            details={"phase": phase, "original_error": original_error}
        )
        self.phase = phase


class SerializationError(RepositoryException):
    """
    Raised when a stored payload cannot be turned back into a series.
    
    Indicates a corrupted or foreign row, never a caller error.
    """
    
    def __init__(
        self,
        repository_name: str,
        record_id: Any,
        reason: str
    ) -> None:
        super().__init__(
            message=f"Stored payload for {record_id} is unreadable: {reason}",
            repository_name=repository_name,
            operation="deserialize",
            details={"record_id": str(record_id), "reason": reason}
        )
        self.record_id = record_id
        self.reason = reason
