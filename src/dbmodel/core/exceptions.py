"""
Exception hierarchy for the persistence layer
"""


class DbModelError(Exception):
    """Base class for every error raised by dbmodel"""
    pass


class DatabaseError(DbModelError):
    """Errors raised by connections and tables"""
    pass


class QueryError(DatabaseError):
    """A statement failed inside the database driver"""

    def __init__(self, message: str, sql: str = None, params=None):
        super().__init__(message)
        self.sql = sql
        self.params = params


class NoTransaction(DatabaseError):
    """Commit or rollback without an open transaction"""
    pass


class RollbackOnly(DatabaseError):
    """Commit attempted after an inner transaction was rolled back"""
    pass


class EmptyValues(DatabaseError, ValueError):
    """Insert or update called without values"""
    pass


class InvalidConditions(DatabaseError, TypeError):
    """Conditions are neither a string, a mapping nor a Condition"""
    pass


class InvalidColumnType(DbModelError, ValueError):
    """Column declared with an unknown semantic type"""
    pass


class EmptyOperand(DbModelError, ValueError):
    """IN / NOT IN built from an empty sequence"""
    pass


class ModelError(DbModelError):
    """Errors raised by models"""
    pass


class UnbindableModel(ModelError):
    """Model with a composite primary key cannot be bound"""
    pass


class MissingId(ModelError, ValueError):
    """Model has no usable id"""
    pass


class OperationNotRevertible(DbModelError):
    """Revert requested for an operation that cannot capture prior state"""
    pass
