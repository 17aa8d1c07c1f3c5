"""
Taxonomia de errores del servicio.

Cada error conoce su codigo HTTP; los exception handlers de app.py
solo lo traducen a la envoltura {success, message}.
"""


class TaskerError(Exception):
    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskerError):
    """Falta un campo requerido o el request de update/search esta vacio."""
    status_code = 400
    default_message = "bad request"


class MalformedInput(TaskerError):
    """Fecha o referencia imposible de parsear."""
    status_code = 400
    default_message = "malformed input"


class NotFound(TaskerError):
    status_code = 404
    default_message = "not found"


class StoreError(TaskerError):
    status_code = 500
    default_message = "store error"
