"""
Design (errors.py)
- Purpose: Error taxonomy shared by gateway, controller and UI.
- ValidationError: phone fails the digit/length rule. Resolved inside the controller.
- StoreError: any gateway failure (network, permission, not-found, ...). Cause kept opaque.
"""

from typing import Optional


class CustomerBookError(Exception):
    """Base class for application errors."""


class ValidationError(CustomerBookError):
    def __init__(self, field: str, value: str):
        super().__init__(f"invalid {field}: {value!r}")
        self.field = field
        self.value = value


class StoreError(CustomerBookError):
    """
    Design (StoreError)
    - operation: gateway operation that failed ("list_all", "upsert", "delete").
    - cause: the underlying exception, if any.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
        self.operation = operation
        self.cause = cause
