class ServiceError(Exception):
    code = "INTERNAL"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        if code:
            self.code = code
        self.message = message or self.code.lower()
        super().__init__(self.message)


class UnauthenticatedError(ServiceError):
    code = "UNAUTHENTICATED"


class ForbiddenError(ServiceError):
    code = "FORBIDDEN"


class NotFoundError(ServiceError):
    code = "NOT_FOUND"


class InvalidArgumentError(ServiceError):
    code = "INVALID_ARGUMENT"


class ConflictError(ServiceError):
    code = "CONFLICT"


class TooFarError(ServiceError):
    code = "TOO_FAR"


class GeocodeFailure(ServiceError):
    code = "GEOCODE_FAILED"


class PersistenceFailure(ServiceError):
    code = "PERSISTENCE_FAILED"
