"""
Service errors

Each error carries the HTTP status the route layer answers with.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class PaymentNotCompleted(ServiceError):
    status_code = 400

    def __init__(self, detail: str = "Payment not completed"):
        super().__init__(detail)


class GatewayUnavailable(ServiceError):
    status_code = 503

    def __init__(self, detail: str = "Payment service is not available. Stripe is not configured."):
        super().__init__(detail)


class InternalError(ServiceError):
    status_code = 500
