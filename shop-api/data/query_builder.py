"""
Helper for assembling parameterised WHERE clauses for asyncpg

Conditions are written with ``{}`` / ``{0}`` placeholders which are replaced by
positional ``$n`` parameters in the order values are added.
"""
from typing import Any, Iterable, List, Optional

class QueryBuilder:
    """Accumulates AND-ed conditions and their parameters"""

    def __init__(self):
        self.conditions: List[str] = []
        self.params: List[Any] = []

    def add_param(self, value: Any) -> str:
        self.params.append(value)
        return f"${len(self.params)}"

    def where(self, clause: str, *values: Any) -> "QueryBuilder":
        placeholders = [self.add_param(value) for value in values]
        self.conditions.append(clause.format(*placeholders))
        return self

    def where_if(self, value: Any, clause: str) -> "QueryBuilder":
        """Add ``clause`` bound to ``value`` unless value is None"""
        if value is not None:
            self.where(clause, value)
        return self

    def search(self, term: Optional[str], columns: Iterable[str]) -> "QueryBuilder":
        """Case-insensitive substring match on any of ``columns``"""
        if term:
            pattern = f"%{escape_like(term)}%"
            clause = " OR ".join(f"{column} ILIKE {{0}}" for column in columns)
            self.where(f"({clause})", pattern)
        return self

    def copy(self) -> "QueryBuilder":
        clone = QueryBuilder()
        clone.conditions = list(self.conditions)
        clone.params = list(self.params)
        return clone

    @property
    def next_index(self) -> int:
        return len(self.params) + 1

    def where_sql(self) -> str:
        if not self.conditions:
            return ""
        return "WHERE " + " AND ".join(self.conditions)

def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
