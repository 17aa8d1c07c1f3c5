import re
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from errors import MalformedInput, ValidationError

DATE_FORMAT = "%Y-%m-%d"
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def is_id(value) -> bool:
    """Solo digitos ASCII: un id por fila, sin signos, espacios ni '_'."""
    return isinstance(value, str) and value.isascii() and value.isdigit()


def parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    if not DATE_PATTERN.fullmatch(value):
        raise MalformedInput(f"failed to parse: {value!r} does not match YYYY-MM-DD")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as e:
        raise MalformedInput(f"failed to parse: {e}")


def format_date(value: Optional[date]) -> str:
    return value.strftime(DATE_FORMAT) if value is not None else ""


def parse_ref(value: Optional[str], field: str) -> Optional[int]:
    if value is None:
        return None
    if not is_id(value):
        raise MalformedInput(f"{field}: invalid reference {value!r}")
    return int(value)


def _require(request: BaseModel, *fields: str):
    for field in fields:
        if getattr(request, field) is None:
            raise ValidationError(f"{field}: cannot be blank")


class RequestModel(BaseModel):
    """Request sparse: None significa 'campo ausente'."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


# ---------------------------------------------------------------- users

class UserRequest(RequestModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    def validate_required(self):
        _require(self, "full_name", "email", "role")


class UserOut(BaseModel):
    id: str
    full_name: str = ""
    email: str = ""
    role: str = ""

    @classmethod
    def from_entity(cls, u) -> "UserOut":
        return cls(
            id=str(u.id),
            full_name=u.full_name or "",
            email=u.email or "",
            role=u.role or "",
        )


# ---------------------------------------------------------------- tasks

class TaskRequest(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    assignee_id: Optional[str] = None
    project_id: Optional[str] = None
    completed_at: Optional[str] = None

    def validate_required(self):
        _require(self, "title", "description", "priority", "status", "assignee_id", "project_id")


class TaskOut(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    priority: str = ""
    status: str = ""
    assignee_id: str = ""
    project_id: str = ""
    completed_at: str = ""

    @classmethod
    def from_entity(cls, t) -> "TaskOut":
        return cls(
            id=str(t.id),
            title=t.title or "",
            description=t.description or "",
            priority=t.priority or "",
            status=t.status or "",
            assignee_id=str(t.assignee_id) if t.assignee_id is not None else "",
            project_id=str(t.project_id) if t.project_id is not None else "",
            completed_at=format_date(t.completed_at),
        )


# ---------------------------------------------------------------- projects

class ProjectRequest(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    manager_id: Optional[str] = None

    def validate_required(self):
        _require(self, "title", "start_date", "manager_id")


class ProjectOut(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    start_date: str = ""
    end_date: str = ""
    manager_id: str = ""

    @classmethod
    def from_entity(cls, p) -> "ProjectOut":
        return cls(
            id=str(p.id),
            title=p.title or "",
            description=p.description or "",
            start_date=format_date(p.start_date),
            end_date=format_date(p.end_date),
            manager_id=str(p.manager_id) if p.manager_id is not None else "",
        )
