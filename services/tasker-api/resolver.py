"""
Resolver de updates parciales (sparse patch).

Dado un entity donde cada campo esta presente o ausente, produce la lista
ordenada de asignaciones (columna, valor) que hay que persistir. La misma
lista alimenta el SET de un UPDATE y el WHERE de un SEARCH.

Reglas de presencia:
- text / ref: presente si no es None (el string vacio SI esta presente).
- date: presente si no es None y, cuando la columna lo declara, distinto
  de la fecha centinela ZERO_DATE.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import func, select, true, update

TEXT = "text"
DATE = "date"
REF = "ref"

EQUALS = "eq"
CONTAINS = "contains"

ZERO_DATE = date(1, 1, 1)


@dataclass(frozen=True)
class Column:
    name: str
    kind: str = TEXT
    zero_is_absent: bool = False
    match: str = EQUALS

    def is_present(self, value: Any) -> bool:
        if value is None:
            return False
        if self.kind == DATE and self.zero_is_absent and value == ZERO_DATE:
            return False
        return True


USER_COLUMNS = (
    Column("full_name", match=CONTAINS),
    Column("email", match=CONTAINS),
    Column("role"),
)

TASK_COLUMNS = (
    Column("title"),
    Column("description"),
    Column("priority"),
    Column("status"),
    Column("assignee_id", kind=REF),
    Column("project_id", kind=REF),
    Column("completed_at", kind=DATE, zero_is_absent=True),
)

PROJECT_COLUMNS = (
    Column("title"),
    Column("description"),
    Column("start_date", kind=DATE, zero_is_absent=True),
    Column("end_date", kind=DATE, zero_is_absent=True),
    Column("manager_id", kind=REF),
)


def resolve_assignments(columns: Sequence[Column], entity: Any) -> List[Tuple[str, Any]]:
    """Asignaciones presentes de `entity`, en el orden de declaracion de `columns`."""
    assignments = []
    for column in columns:
        value = getattr(entity, column.name, None)
        if column.is_present(value):
            assignments.append((column.name, value))
    return assignments


class UpdateBuilder:
    """Arma UPDATE ... SET <presentes>, updated_at=now() WHERE id=:id RETURNING id."""

    def __init__(self, model, columns: Sequence[Column]):
        self.model = model
        self.columns = columns

    def build(self, entity_id: int, entity: Any) -> Optional[Any]:
        assignments = resolve_assignments(self.columns, entity)
        if not assignments:
            return None
        values = dict(assignments)
        values["updated_at"] = func.now()
        return (
            update(self.model)
            .where(self.model.id == entity_id)
            .values(**values)
            .returning(self.model.id)
        )


class SearchBuilder:
    """Arma SELECT ... WHERE true AND <presentes> ORDER BY id."""

    def __init__(self, model, columns: Sequence[Column]):
        self.model = model
        self.columns = columns
        self._by_name = {c.name: c for c in columns}

    def build(self, entity: Any):
        stmt = select(self.model).where(true())
        for name, value in resolve_assignments(self.columns, entity):
            attr = getattr(self.model, name)
            if self._by_name[name].match == CONTAINS:
                stmt = stmt.where(attr.icontains(value, autoescape=True))
            else:
                stmt = stmt.where(attr == value)
        return stmt.order_by(self.model.id)
