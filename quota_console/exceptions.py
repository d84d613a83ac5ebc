"""
Custom exceptions for the quota console application.
Services raise these; the API layer renders them as {success: false, message}.
"""


class ConsoleException(Exception):
    """Base exception for quota console application"""
    pass


class AlreadyCheckedInException(ConsoleException):
    """Raised when the user already checked in today"""
    def __init__(self, user_id: int, checkin_date: str):
        self.user_id = user_id
        self.checkin_date = checkin_date
        super().__init__("Already checked in today")


class CheckinDisabledException(ConsoleException):
    """Raised when the check-in feature is switched off"""
    def __init__(self):
        super().__init__("Check-in is disabled")


class InvalidCheckinCodeException(ConsoleException):
    """Raised when the submitted check-in code does not match"""
    def __init__(self):
        super().__init__("Invalid check-in code")


class UserGroupNotFoundException(ConsoleException):
    """Raised when a user group is not found"""
    def __init__(self, user_group_id: int):
        self.user_group_id = user_group_id
        super().__init__(f"User group with ID {user_group_id} not found")


class ModelGroupNotFoundException(ConsoleException):
    """Raised when a model group is not found"""
    def __init__(self, model_group_id: int):
        self.model_group_id = model_group_id
        super().__init__(f"Model group with ID {model_group_id} not found")


class DatabaseException(ConsoleException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")


class ValidationException(ConsoleException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
