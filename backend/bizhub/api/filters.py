"""Query helpers shared by the list endpoints."""

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement


def escape_like(s: str) -> str:
    """Escape SQL LIKE wildcards in user input."""
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_filter(term: str, *columns) -> ColumnElement[bool]:
    """Case-insensitive substring match of ``term`` on any of ``columns``."""
    like = f"%{escape_like(term)}%"
    return or_(*(column.ilike(like, escape="\\") for column in columns))
