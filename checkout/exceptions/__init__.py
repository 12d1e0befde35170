"""Custom exceptions for the checkout engine."""


class ShopError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", payload=None):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(ShopError):
    """Raised for invalid arguments: non-positive ids or quantities, empty names, negative prices."""
    def __init__(self, message, payload=None):
        super().__init__(message, payload)


class ParseError(ValidationError):
    """Raised when a persisted row cannot be parsed. Always recovered by skipping the row."""
    def __init__(self, message, source=None, line_number=None):
        super().__init__(message, {'source': source, 'line_number': line_number})
        self.source = source
        self.line_number = line_number


class NotFoundError(ShopError):
    """Raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, payload)


class PermissionDeniedError(ShopError):
    """Raised when the current role lacks a capability."""
    def __init__(self, message="Permission denied", payload=None):
        super().__init__(message, payload)


class StorageError(ShopError):
    """Raised by repositories when a file cannot be read or written."""
    def __init__(self, message, path=None):
        super().__init__(message, {'path': str(path) if path is not None else None})
        self.path = path
