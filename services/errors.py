"""
Service-layer exceptions. Route handlers translate these into JSON responses.
"""


class ServiceError(Exception):
    """Base class for business-rule failures raised by services"""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError):
    """A referenced record does not exist"""
    status_code = 404

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found: {record_id}")


class BusinessRuleError(ServiceError):
    """The request is well-formed but not allowed in the record's current state"""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)
