"""
Dependency matching for catalog queries.

A formula matches a query when one of its dependencies is the query itself or
a versioned variant of it (``python`` matches ``python`` and ``python@3.12``).
Matching is case-sensitive and performs no normalization.
"""

from .error_handling import ErrorCategory, QueryValidationError, get_error_handler
from .formula import Formula

MAX_QUERY_LENGTH = 30
VERSION_SEPARATOR = "@"


def validate_query(query: str) -> str:
    """
    Reject queries longer than MAX_QUERY_LENGTH characters.

    Returns:
        str: The query, unchanged

    Raises:
        QueryValidationError: If the query is too long
    """
    if len(query) > MAX_QUERY_LENGTH:
        message = (
            f"The language is more than {MAX_QUERY_LENGTH} characters long, "
            f"which is unexpected: language={query}"
        )
        get_error_handler().warning(
            ErrorCategory.VALIDATION,
            message,
            "matcher",
            "validate_query",
            details={"query_length": len(query)},
        )
        raise QueryValidationError(message)
    return query


def dependency_matches(dependency: str, query: str) -> bool:
    """Return True if a single dependency name is the query or a versioned variant."""
    return dependency == query or dependency.startswith(query + VERSION_SEPARATOR)


def matches(formula: Formula, query: str) -> bool:
    """Return True if any dependency category of ``formula`` holds ``query``."""
    return any(
        dependency_matches(dependency, query)
        for dependency in formula.all_dependencies()
    )
