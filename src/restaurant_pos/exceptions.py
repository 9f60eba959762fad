"""
Ошибки предметной области.

Каждая ошибка несёт пару title/detail (заголовок и текст уведомления для
пользователя) и HTTP-статус, с которым её отдаёт API.
"""
from typing import Any, Optional


class POSError(Exception):
    status_code = 400
    title = "Request failed"

    def __init__(self, detail: str, *, title: Optional[str] = None, **extra: Any):
        super().__init__(detail)
        self.detail = detail
        if title is not None:
            self.title = title
        self.extra = extra

    def to_dict(self) -> dict:
        return {"title": self.title, "detail": self.detail, **self.extra}


class ValidationError(POSError):
    status_code = 422
    title = "Invalid input"


class NotFoundError(POSError):
    status_code = 404
    title = "Not found"


class ConflictError(POSError):
    status_code = 409
    title = "Conflict"


class ConfirmationRequiredError(ConflictError):
    title = "Confirmation required"


class PersistenceError(POSError):
    status_code = 503
    title = "Database error"


class PartialUpdateError(PersistenceError):
    """
    Первый шаг составной операции сохранён, второй - нет.
    В extra указывается, что именно успело записаться.
    """
    status_code = 500
    title = "Partially applied"


class PresentationError(POSError):
    status_code = 503
    title = "Rendering unavailable"
