import os
from dataclasses import dataclass

DEFAULT_DATABASE_URL = "postgresql+psycopg2://postgres:postgres@db:5432/appdb"


@dataclass(frozen=True)
class Settings:
    mode: str = "dev"
    port: int = 8080
    base_path: str = "/api/v1"
    request_timeout: float = 60.0
    database_url: str = DEFAULT_DATABASE_URL

    @property
    def debug(self) -> bool:
        return self.mode == "dev"


def _normalize_path(path: str) -> str:
    path = "/" + path.strip("/")
    return "" if path == "/" else path


def load_settings() -> Settings:
    """Lee la configuracion del entorno. Solo se consume al arrancar."""
    return Settings(
        mode=os.getenv("APP_MODE", "dev"),
        port=int(os.getenv("APP_PORT", "8080")),
        base_path=_normalize_path(os.getenv("APP_PATH", "/api/v1")),
        request_timeout=float(os.getenv("APP_TIMEOUT", "60")),
        database_url=os.getenv("DATABASE_URL") or os.getenv("POSTGRES_DSN", DEFAULT_DATABASE_URL),
    )
