class ServiceError(Exception):
    status_code = 500
    message = "Unknown error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# Rejected before any external call
class ValidationFailed(ServiceError):
    status_code = 400
    message = "Invalid request"


class Unauthorized(ServiceError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(ServiceError):
    status_code = 403
    message = "Forbidden"


class NotFound(ServiceError):
    status_code = 404
    message = "Not found"


# Upstream AI provider
class RateLimited(ServiceError):
    message = "Rate limit exceeded. Please try again later."


class PaymentRequired(ServiceError):
    message = "AI service payment required. Please contact support."


class GenerationFailed(ServiceError):
    message = "Failed to generate recommendations"


class NoResultProduced(ServiceError):
    message = "No result produced"


class PersistenceFailed(ServiceError):
    message = "Failed to save results"
