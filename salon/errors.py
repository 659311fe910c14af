# salon/errors.py


class SalonError(Exception):
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SalonError):
    code = "NOT_FOUND"
    status_code = 404


class SlotUnavailableError(SalonError):
    code = "SLOT_UNAVAILABLE"
    status_code = 409

    def __init__(self, message: str = "El horario seleccionado no está disponible."):
        super().__init__(message)


class ClientConflictError(SalonError):
    code = "CLIENT_CONFLICT"
    status_code = 409


class ClientHasFutureAppointmentsError(SalonError):
    code = "CLIENT_HAS_FUTURE_APPOINTMENTS"
    status_code = 409


class DuplicateClientError(SalonError):
    code = "DUPLICATE_CLIENT"
    status_code = 409


class InvalidTransitionError(SalonError):
    code = "INVALID_TRANSITION"
    status_code = 409


class NotificationSendError(SalonError):
    """Transport failure; raised inside the worker so the job is retried."""

    code = "NOTIFICATION_FAILED"
    status_code = 502
