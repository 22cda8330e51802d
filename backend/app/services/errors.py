"""Domain errors raised by the workflow services and mapped to HTTP in main.py."""


class WorkflowError(Exception):
    """A business rule or status transition rejected the request (HTTP 400)."""


class FieldValidationError(WorkflowError):
    """A single input field is ill-formed (HTTP 422, reported per field)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message
