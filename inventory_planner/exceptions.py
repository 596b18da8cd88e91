class PlannerError(Exception):
    """Base exception for Inventory Planner errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Inventory Planner"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class ConfigError(PlannerError):
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class DatabaseError(PlannerError):
    """Exception raised for database-related errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Database error"
        super().__init__(message, code, details)


class ValidationError(PlannerError):
    """Exception raised for input record or parameter validation errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class NotFoundError(PlannerError):
    """Exception raised when a requested record is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Record not found"
        super().__init__(message, code, details)


class ReportingError(PlannerError):
    """Exception raised when a forecast or report cannot be produced."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Reporting error"
        super().__init__(message, code, details)
