"""
Repositorios CRUD por recurso.

Cada operacion es un solo round trip al store (salvo el delete de usuario,
que son dos sentencias independientes, sin transaccion que las agrupe).
"Ninguna fila" se traduce a NotFound; cualquier otro fallo de SQLAlchemy
sale como StoreError.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from errors import NotFound, StoreError
from models import Project, Task, User
from schemas import is_id
from resolver import (
    PROJECT_COLUMNS,
    TASK_COLUMNS,
    USER_COLUMNS,
    SearchBuilder,
    UpdateBuilder,
)

log = logging.getLogger(__name__)

# Sesiones de vida corta: no hay objetos que sincronizar tras UPDATE/DELETE
NO_SYNC = {"synchronize_session": False}


def to_id(value) -> Optional[int]:
    """Ids de path invalidos no pueden existir en el store."""
    return int(value) if is_id(value) else None


class BaseRepository:
    model = None
    columns = ()

    def __init__(self, session_scope, logger: Optional[logging.Logger] = None):
        self.session_scope = session_scope
        self.logger = logger or log
        self.updater = UpdateBuilder(self.model, self.columns)
        self.searcher = SearchBuilder(self.model, self.columns)

    @property
    def name(self) -> str:
        return self.model.__tablename__

    @contextmanager
    def _session(self, operation: str):
        try:
            with self.session_scope() as s:
                yield s
        except SQLAlchemyError as e:
            self.logger.debug(f"{self.name}.{operation} fallo en el store: {e}")
            raise StoreError(f"{self.name}.{operation}: {e.__class__.__name__}: {e}") from e

    def list(self) -> List:
        with self._session("list") as s:
            return list(s.scalars(select(self.model).order_by(self.model.id)).all())

    def add(self, entity) -> int:
        with self._session("add") as s:
            s.add(entity)
            s.flush()  # obtener entity.id
        return entity.id

    def get(self, entity_id):
        pk = to_id(entity_id)
        if pk is None:
            raise NotFound(f"{self.name}: {entity_id} not found")
        with self._session("get") as s:
            entity = s.get(self.model, pk)
        if entity is None:
            raise NotFound(f"{self.name}: {entity_id} not found")
        return entity

    def update(self, entity_id, entity) -> None:
        pk = to_id(entity_id)
        stmt = self.updater.build(pk, entity)
        if stmt is None:
            # Nada que actualizar: no-op silencioso
            return
        if pk is None:
            raise NotFound(f"{self.name}: {entity_id} not found")
        with self._session("update") as s:
            updated = s.execute(stmt, execution_options=NO_SYNC).scalar_one_or_none()
        if updated is None:
            raise NotFound(f"{self.name}: {entity_id} not found")

    def delete(self, entity_id) -> int:
        pk = to_id(entity_id)
        if pk is None:
            raise NotFound(f"{self.name}: {entity_id} not found")
        stmt = delete(self.model).where(self.model.id == pk).returning(self.model.id)
        with self._session("delete") as s:
            deleted = s.execute(stmt, execution_options=NO_SYNC).scalar_one_or_none()
        if deleted is None:
            raise NotFound(f"{self.name}: {entity_id} not found")
        return deleted

    def search(self, criteria) -> List:
        with self._session("search") as s:
            return list(s.scalars(self.searcher.build(criteria)).all())

    def _list_tasks_where(self, entity_id, column) -> List:
        """Sonda de existencia del padre y luego tareas filtradas."""
        pk = to_id(entity_id)
        if pk is None:
            raise NotFound(f"{self.name}: {entity_id} not found")
        with self._session("list_tasks") as s:
            exists = s.execute(select(self.model.id).where(self.model.id == pk)).first()
            if exists is None:
                raise NotFound(f"{self.name}: {entity_id} not found")
            stmt = select(Task).where(column == pk).order_by(Task.id)
            return list(s.scalars(stmt).all())


class UserRepository(BaseRepository):
    model = User
    columns = USER_COLUMNS

    def delete(self, entity_id) -> int:
        pk = to_id(entity_id)
        if pk is None:
            raise NotFound(f"{self.name}: {entity_id} not found")
        # Dos sentencias independientes: un fallo entre ambas deja las
        # tareas desasignadas con el usuario todavia presente.
        with self._session("detach_tasks") as s:
            detached = s.execute(
                update(Task).where(Task.assignee_id == pk).values(assignee_id=None),
                execution_options=NO_SYNC,
            ).rowcount
        self.logger.debug(f"users.delete: {detached} tareas desasignadas del usuario {pk}")
        return super().delete(entity_id)

    def list_tasks(self, entity_id) -> List:
        return self._list_tasks_where(entity_id, Task.assignee_id)


class TaskRepository(BaseRepository):
    model = Task
    columns = TASK_COLUMNS


class ProjectRepository(BaseRepository):
    model = Project
    columns = PROJECT_COLUMNS

    def list_tasks(self, entity_id) -> List:
        return self._list_tasks_where(entity_id, Task.project_id)
