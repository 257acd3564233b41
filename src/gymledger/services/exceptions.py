# gymledger/services/exceptions.py

from typing import Optional

class ServiceException(Exception):
    """Base exception for all service layer errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class NotFoundError(ServiceException):
    """Raised when a member, payment or plan does not exist for the current gym."""
    pass

class TenantNotResolvedError(NotFoundError):
    """Raised when no gym id can be resolved for the caller."""
    pass

class AlreadyActiveError(ServiceException):
    """Raised when a rejoin is attempted on a member that is already active."""
    pass

class ValidationError(ServiceException):
    """Raised for malformed input such as an out-of-range anchor day."""
    pass

class BackendUnavailableError(ServiceException):
    """Raised when the backing store cannot be reached. Never retried inside the engine."""
    pass

class PartialFailureError(ServiceException):
    """
    A later write in a multi-step sequence failed after an earlier one had
    already been applied. Carries enough context for an operator to repair
    the data by hand.
    """
    def __init__(self, message: str, member_id: Optional[int] = None, step: Optional[str] = None):
        self.member_id = member_id
        self.step = step
        # set once logged and audited, so enclosing handlers do not repeat it
        self.reported = False
        super().__init__(message)
