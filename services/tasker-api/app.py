import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, load_settings
from db import init_schema, make_engine, make_session_scope
from errors import TaskerError, ValidationError
from repository import ProjectRepository, TaskRepository, UserRepository
from schemas import ProjectRequest, TaskRequest, UserRequest
from service import TaskerService

logger = logging.getLogger(__name__)

HEALTH_STATUS = "Im okay, dont worry Morty"


def ok(data, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": True, "data": jsonable_encoder(data)})


def fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def get_service(request: Request) -> TaskerService:
    return request.app.state.service


# ---------------------------------------------------------------- users

users = APIRouter(prefix="/users", tags=["users"])


@users.get("/")
def list_users(svc: TaskerService = Depends(get_service)):
    return ok(svc.list_users())


@users.post("/", status_code=201)
def create_user(payload: UserRequest, svc: TaskerService = Depends(get_service)):
    """Crear usuario. Requeridos: full_name, email, role."""
    payload.validate_required()
    return ok(svc.create_user(payload), status_code=201)


@users.get("/search")
def search_users(
    name: Optional[str] = None,
    email: Optional[str] = None,
    svc: TaskerService = Depends(get_service),
):
    """Busqueda por substring, sin distinguir mayusculas."""
    if not name and not email:
        raise ValidationError("name or email query parameter required")
    return ok(svc.search_users(name, email))


@users.get("/{user_id}")
def get_user(user_id: str, svc: TaskerService = Depends(get_service)):
    return ok(svc.get_user(user_id))


@users.put("/{user_id}")
def update_user(user_id: str, payload: UserRequest, svc: TaskerService = Depends(get_service)):
    if payload.is_empty():
        raise ValidationError("bad request")
    svc.update_user(user_id, payload)
    return ok("ok")


@users.delete("/{user_id}")
def delete_user(user_id: str, svc: TaskerService = Depends(get_service)):
    """Desasigna las tareas del usuario y luego lo elimina."""
    return ok(svc.delete_user(user_id))


@users.get("/{user_id}/tasks")
def list_user_tasks(user_id: str, svc: TaskerService = Depends(get_service)):
    return ok(svc.get_tasks_by_user(user_id))


# ---------------------------------------------------------------- tasks

tasks = APIRouter(prefix="/tasks", tags=["tasks"])


@tasks.get("/")
def list_tasks(svc: TaskerService = Depends(get_service)):
    return ok(svc.list_tasks())


@tasks.post("/", status_code=201)
def create_task(payload: TaskRequest, svc: TaskerService = Depends(get_service)):
    payload.validate_required()
    return ok(svc.create_task(payload), status_code=201)


@tasks.get("/search")
def search_tasks(
    title: Optional[str] = None,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    assignee_id: Optional[str] = None,
    project_id: Optional[str] = None,
    svc: TaskerService = Depends(get_service),
):
    # Query vacia == parametro ausente
    criteria = TaskRequest(
        title=title or None,
        priority=priority or None,
        status=status or None,
        assignee_id=assignee_id or None,
        project_id=project_id or None,
    )
    if criteria.is_empty():
        raise ValidationError("query parameters required")
    return ok(svc.search_tasks(criteria))


@tasks.get("/{task_id}")
def get_task(task_id: str, svc: TaskerService = Depends(get_service)):
    return ok(svc.get_task(task_id))


@tasks.put("/{task_id}")
def update_task(task_id: str, payload: TaskRequest, svc: TaskerService = Depends(get_service)):
    if payload.is_empty():
        raise ValidationError("bad request")
    svc.update_task(task_id, payload)
    return ok("ok")


@tasks.delete("/{task_id}")
def delete_task(task_id: str, svc: TaskerService = Depends(get_service)):
    return ok(svc.delete_task(task_id))


# ---------------------------------------------------------------- projects

projects = APIRouter(prefix="/projects", tags=["projects"])


@projects.get("/")
def list_projects(svc: TaskerService = Depends(get_service)):
    return ok(svc.list_projects())


@projects.post("/", status_code=201)
def create_project(payload: ProjectRequest, svc: TaskerService = Depends(get_service)):
    payload.validate_required()
    return ok(svc.create_project(payload), status_code=201)


@projects.get("/search")
def search_projects(
    title: Optional[str] = None,
    manager_id: Optional[str] = None,
    svc: TaskerService = Depends(get_service),
):
    criteria = ProjectRequest(title=title or None, manager_id=manager_id or None)
    if criteria.is_empty():
        raise ValidationError("query parameters required")
    return ok(svc.search_projects(criteria))


@projects.get("/{project_id}")
def get_project(project_id: str, svc: TaskerService = Depends(get_service)):
    return ok(svc.get_project(project_id))


@projects.put("/{project_id}")
def update_project(project_id: str, payload: ProjectRequest, svc: TaskerService = Depends(get_service)):
    """Update parcial: solo se tocan los campos presentes en el body."""
    if payload.is_empty():
        raise ValidationError("bad request")
    svc.update_project(project_id, payload)
    return ok("ok")


@projects.delete("/{project_id}")
def delete_project(project_id: str, svc: TaskerService = Depends(get_service)):
    return ok(svc.delete_project(project_id))


@projects.get("/{project_id}/tasks")
def list_project_tasks(project_id: str, svc: TaskerService = Depends(get_service)):
    return ok(svc.get_tasks_by_project(project_id))


# ---------------------------------------------------------------- health

health = APIRouter(prefix="/health", tags=["health"])


@health.get("/")
def health_check():
    """Status literal, sin chequear dependencias."""
    return ok(HEALTH_STATUS)


# ---------------------------------------------------------------- wiring

def build_service(session_scope) -> TaskerService:
    return TaskerService(
        users=UserRepository(session_scope),
        tasks=TaskRepository(session_scope),
        projects=ProjectRepository(session_scope),
    )


def create_app(settings: Optional[Settings] = None, service: Optional[TaskerService] = None) -> FastAPI:
    settings = settings or load_settings()
    engine = None
    if service is None:
        engine = make_engine(settings.database_url)
        init_schema(engine)
        service = build_service(make_session_scope(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Iniciando Tasker API (modo={settings.mode}, path={settings.base_path or '/'})")
        yield
        logger.info("Deteniendo Tasker API")
        if engine is not None:
            engine.dispose()

    app = FastAPI(title="Tasker API", debug=settings.debug, lifespan=lifespan)
    app.state.service = service
    app.state.settings = settings

    for router in (users, tasks, projects, health):
        app.include_router(router, prefix=settings.base_path)

    @app.middleware("http")
    async def timeout_middleware(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.request_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Timeout de {settings.request_timeout}s en {request.method} {request.url.path}")
            return fail(500, "request timeout")

    @app.exception_handler(TaskerError)
    async def tasker_error_handler(request: Request, exc: TaskerError):
        return fail(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}" for err in exc.errors()
        )
        return fail(400, message or "bad request")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return fail(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Error no manejado en {request.method} {request.url.path}")
        return fail(500, "internal server error")

    return app


def main():
    settings = load_settings()
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("app:create_app", factory=True, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
