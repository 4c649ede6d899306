"""
Custom exception classes for the application.

Storage failures raised by SQLAlchemy propagate as they are; the classes here
cover the conditions the data layer detects itself.
"""


class ApplicationError(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised when there's a configuration issue"""

    def __init__(self, message: str, missing_keys: list[str] | None = None):
        details = {"missing_keys": missing_keys} if missing_keys else {}
        super().__init__(message, details)


class StoreInitializationError(ConfigurationError):
    """Raised when the store cannot be opened or its schema cannot be built.

    The application cannot run without a working store, callers should stop.
    """

    def __init__(self, db_path: str, message: str | None = None):
        msg = message or f"Failed to initialize the store at {db_path}"
        super().__init__(msg)
        self.details["db_path"] = db_path


class StoreNotInitializedError(ApplicationError):
    """Raised when the data manager is used before initialize()"""

    def __init__(self, operation: str):
        super().__init__(
            f"Cannot run '{operation}': the data manager has not been initialized",
            {"operation": operation},
        )


class ValidationError(ApplicationError):
    """Raised when validation fails"""

    def __init__(self, message: str, invalid_fields: dict | None = None):
        details = {"invalid_fields": invalid_fields} if invalid_fields else {}
        super().__init__(message, details)
