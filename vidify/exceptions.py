"""
Custom exceptions for better error handling and user feedback
"""


class LedgerError(Exception):
    """Base class for follow and like/dislike ledger failures"""
    kind = "ledger_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidOperation(LedgerError):
    """Raised when a user tries to follow themselves"""
    kind = "invalid_operation"

    def __init__(self, message: str = "You cannot follow yourself"):
        super().__init__(message)


class AlreadyExists(LedgerError):
    """Raised when the follow edge is already present"""
    kind = "already_exists"

    def __init__(self, message: str = "Already following the user"):
        super().__init__(message)


class NotFollowing(LedgerError):
    """Raised when unfollowing a user that is not followed"""
    kind = "not_following"

    def __init__(self, message: str = "You are not following this user"):
        super().__init__(message)


class NotFound(LedgerError):
    """Raised when a referenced user or content does not exist"""
    kind = "not_found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class StorageFailure(LedgerError):
    """Raised when the database rejects or fails a write"""
    kind = "storage_failure"

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message)


class UploadValidationError(Exception):
    """Base class for upload validation errors"""
    pass


class FileTooLargeError(UploadValidationError):
    """Raised when an uploaded file exceeds its size limit"""

    def __init__(self, field: str, max_size_mb: int):
        self.field = field
        self.max_size_mb = max_size_mb
        super().__init__(
            f"{field} is too large. Maximum size allowed is {max_size_mb}MB.")


class EmptyFileError(UploadValidationError):
    """Raised when an uploaded file has no content"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} file is empty")


class EmailDeliveryError(Exception):
    """Raised when the OTP email could not be sent"""
    pass
