"""
TaskerService: orquestacion por recurso.

Request DTO -> entity -> repositorio -> entity -> response DTO. No agrega
reglas de negocio; los errores del repositorio se loguean y se propagan
sin cambios.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from errors import NotFound, TaskerError
from models import Project, Task, User
from schemas import (
    ProjectOut,
    ProjectRequest,
    TaskOut,
    TaskRequest,
    UserOut,
    UserRequest,
    parse_date,
    parse_ref,
)

log = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


class TaskerService:
    def __init__(self, users, tasks, projects, logger: Optional[logging.Logger] = None):
        self.users = users
        self.tasks = tasks
        self.projects = projects
        self.logger = logger or log

    @contextmanager
    def _logged(self, operation: str):
        try:
            yield
        except NotFound as e:
            self.logger.info(f"{operation}: {e.message}")
            raise
        except TaskerError as e:
            self.logger.error(f"Falló {operation}: {e.message}")
            raise

    # ------------------------------------------------------------ users

    @staticmethod
    def _user_entity(req: UserRequest) -> User:
        return User(full_name=req.full_name, email=req.email, role=req.role)

    def list_users(self) -> List[UserOut]:
        with self._logged("list_users"):
            return [UserOut.from_entity(u) for u in self.users.list()]

    def create_user(self, req: UserRequest) -> UserOut:
        with self._logged("create_user"):
            entity = self._user_entity(req)
            self.users.add(entity)
            self.logger.info(f"Usuario {entity.id} creado")
            return UserOut.from_entity(entity)

    def get_user(self, user_id: str) -> UserOut:
        with self._logged("get_user"):
            return UserOut.from_entity(self.users.get(user_id))

    def update_user(self, user_id: str, req: UserRequest) -> None:
        with self._logged("update_user"):
            self.users.update(user_id, self._user_entity(req))

    def delete_user(self, user_id: str) -> str:
        with self._logged("delete_user"):
            deleted = self.users.delete(user_id)
            self.logger.info(f"Usuario {deleted} eliminado")
            return str(deleted)

    def search_users(self, name: Optional[str], email: Optional[str]) -> List[UserOut]:
        criteria = User(full_name=_blank_to_none(name), email=_blank_to_none(email))
        with self._logged("search_users"):
            return [UserOut.from_entity(u) for u in self.users.search(criteria)]

    def get_tasks_by_user(self, user_id: str) -> List[TaskOut]:
        with self._logged("get_tasks_by_user"):
            return [TaskOut.from_entity(t) for t in self.users.list_tasks(user_id)]

    # ------------------------------------------------------------ tasks

    @staticmethod
    def _task_entity(req: TaskRequest) -> Task:
        return Task(
            title=req.title,
            description=req.description,
            priority=req.priority,
            status=req.status,
            assignee_id=parse_ref(req.assignee_id, "assignee_id"),
            project_id=parse_ref(req.project_id, "project_id"),
            completed_at=parse_date(req.completed_at),
        )

    def list_tasks(self) -> List[TaskOut]:
        with self._logged("list_tasks"):
            return [TaskOut.from_entity(t) for t in self.tasks.list()]

    def create_task(self, req: TaskRequest) -> TaskOut:
        with self._logged("create_task"):
            entity = self._task_entity(req)
            self.tasks.add(entity)
            self.logger.info(f"Tarea {entity.id} creada")
            return TaskOut.from_entity(entity)

    def get_task(self, task_id: str) -> TaskOut:
        with self._logged("get_task"):
            return TaskOut.from_entity(self.tasks.get(task_id))

    def update_task(self, task_id: str, req: TaskRequest) -> None:
        with self._logged("update_task"):
            self.tasks.update(task_id, self._task_entity(req))

    def delete_task(self, task_id: str) -> str:
        with self._logged("delete_task"):
            return str(self.tasks.delete(task_id))

    def search_tasks(self, req: TaskRequest) -> List[TaskOut]:
        with self._logged("search_tasks"):
            return [TaskOut.from_entity(t) for t in self.tasks.search(self._task_entity(req))]

    # ------------------------------------------------------------ projects

    @staticmethod
    def _project_entity(req: ProjectRequest) -> Project:
        return Project(
            title=req.title,
            description=req.description,
            start_date=parse_date(req.start_date),
            end_date=parse_date(req.end_date),
            manager_id=parse_ref(req.manager_id, "manager_id"),
        )

    def list_projects(self) -> List[ProjectOut]:
        with self._logged("list_projects"):
            return [ProjectOut.from_entity(p) for p in self.projects.list()]

    def create_project(self, req: ProjectRequest) -> ProjectOut:
        with self._logged("create_project"):
            entity = self._project_entity(req)
            self.projects.add(entity)
            self.logger.info(f"Proyecto {entity.id} creado")
            return ProjectOut.from_entity(entity)

    def get_project(self, project_id: str) -> ProjectOut:
        with self._logged("get_project"):
            return ProjectOut.from_entity(self.projects.get(project_id))

    def update_project(self, project_id: str, req: ProjectRequest) -> None:
        with self._logged("update_project"):
            self.projects.update(project_id, self._project_entity(req))

    def delete_project(self, project_id: str) -> str:
        with self._logged("delete_project"):
            return str(self.projects.delete(project_id))

    def search_projects(self, req: ProjectRequest) -> List[ProjectOut]:
        with self._logged("search_projects"):
            return [ProjectOut.from_entity(p) for p in self.projects.search(self._project_entity(req))]

    def get_tasks_by_project(self, project_id: str) -> List[TaskOut]:
        with self._logged("get_tasks_by_project"):
            return [TaskOut.from_entity(t) for t in self.projects.list_tasks(project_id)]
