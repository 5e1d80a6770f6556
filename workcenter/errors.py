"""Ошибки предметной области.

Сервисы бросают только эти исключения; перевод в HTTP-ответы живёт в
workcenter.main (см. register_exception_handlers).
"""


class WorkCenterError(Exception):
    """Базовая ошибка приложения."""

    status_code = 500

    def __init__(self, message: str = "Request failed"):
        super().__init__(message)
        self.message = message


class ValidationError(WorkCenterError):
    """Некорректный ввод. Состояние не меняется."""

    status_code = 400


class InvalidQuantity(ValidationError):
    pass


class NotFound(WorkCenterError):
    """Сущность не найдена. Наружу всегда уходит generic 'Not found'."""

    status_code = 404


class OrderNotFound(NotFound):
    pass


class CustomerNotFound(NotFound):
    pass


class ProductNotFound(NotFound):
    pass


class AttachmentNotFound(NotFound):
    pass


class UserNotFound(NotFound):
    pass


class Conflict(WorkCenterError):
    """Дубликат или недопустимый переход. Автоматически не повторяется."""

    status_code = 409


class InvalidState(Conflict):
    pass


class DuplicateLabel(Conflict):
    pass


class ConcurrencyFailure(WorkCenterError):
    """Транзакция не прошла из-за конкуренции. Единственная ошибка, которую можно повторять."""

    status_code = 503
