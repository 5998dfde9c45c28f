"""
Domain package for querylog.

Exports the query execution record and its value types. Keep this package
focused on data definitions and validation concerns.
"""

from querylog.domain.models import Error, LogEntry, Ok, QueryResult, Tagged

__all__ = [
    "Error",
    "LogEntry",
    "Ok",
    "QueryResult",
    "Tagged",
]
