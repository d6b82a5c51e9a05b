"""Domain errors raised by the service layer.

Routes never catch these; a single handler registered in ``hotel_api.main``
turns them into ``{"detail": ..., "error": ...}`` responses.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class InvalidRange(ValidationError):
    pass


class MissingPaymentDetails(ValidationError):
    pass


class NotFound(ServiceError):
    status_code = 404


class BookingNotFound(NotFound):
    pass


class RoomNotFound(NotFound):
    pass


class UserNotFound(NotFound):
    pass


class Forbidden(ServiceError):
    status_code = 403


# Wrong-state and unavailable answers are plain 400s on the public API.
class Conflict(ServiceError):
    status_code = 400


class RoomUnavailable(Conflict):
    pass


class InvalidTransition(Conflict):
    pass


class PersistenceError(ServiceError):
    status_code = 500


class DuplicateRoomNumber(ServiceError):
    status_code = 409
