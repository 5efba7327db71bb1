"""Custom exception classes for the grade-book service.

All domain-level errors should be raised as one of these typed exceptions so
that FastAPI exception handlers can convert them to structured HTTP responses.
The grade calculator, ranking engine and export formatter never raise for bad
numeric input; these exceptions belong to the roster, account and import
layers around them.
"""


class ClassNotFoundError(Exception):
    """Raised when a class id does not resolve in the tenant's grade book.

    Args:
        class_id: The opaque class id that was not found.
    """

    def __init__(self, class_id: str) -> None:
        super().__init__(f"Class with id={class_id} not found")
        self.class_id: str = class_id


class SubjectNotFoundError(Exception):
    """Raised when a subject id is not part of the given class.

    Args:
        class_id: Owning class id.
        subject_id: The subject id that was not found.
    """

    def __init__(self, class_id: str, subject_id: str) -> None:
        super().__init__(f"Subject with id={subject_id} not found in class {class_id}")
        self.class_id: str = class_id
        self.subject_id: str = subject_id


class StudentNotFoundError(Exception):
    """Raised when a student id does not resolve in the tenant's grade book.

    Args:
        student_id: The opaque student id that was not found.
    """

    def __init__(self, student_id: str) -> None:
        super().__init__(f"Student with id={student_id} not found")
        self.student_id: str = student_id


class InvalidInputError(Exception):
    """Raised when a roster operation receives unusable input (e.g. blank name).

    Args:
        message: Human-readable description of the problem.
        field: Name of the offending field, when known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field: str | None = field


class CSVImportError(Exception):
    """Raised by a strict CSV import when the file does not fit the class.

    Args:
        message: Summary of the mismatch.
        problems: Every column-count problem found in the file.
    """

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems: list[str] = problems or []


class BackupRestoreError(Exception):
    """Raised when an uploaded backup document cannot be restored.

    Args:
        message: Description of what is missing or malformed.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfirmationRequiredError(Exception):
    """Raised when a destructive operation is called without ``confirm=true``.

    Args:
        action: Short name of the destructive action (e.g. ``"restore"``).
    """

    def __init__(self, action: str) -> None:
        super().__init__(f"Action '{action}' replaces or deletes data; repeat with confirm=true")
        self.action: str = action


class SubscriptionLimitError(Exception):
    """Raised when an operation would exceed the subscriber's quota.

    Args:
        limit_name: Which quota was hit (``max_classes`` or ``max_students_per_class``).
        limit: The configured quota value.
    """

    def __init__(self, limit_name: str, limit: int) -> None:
        super().__init__(f"Subscription limit reached: {limit_name}={limit}")
        self.limit_name: str = limit_name
        self.limit: int = limit


class InvalidCredentialsError(Exception):
    """Raised when a username/password pair or an access token is rejected."""

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class AccountDisabledError(Exception):
    """Raised when a suspended account attempts to log in or use a token.

    Args:
        username: The suspended account.
    """

    def __init__(self, username: str) -> None:
        super().__init__(f"Account '{username}' has been suspended")
        self.username: str = username


class SubscriptionExpiredError(Exception):
    """Raised when an account's subscription expiry date has passed.

    Args:
        username: The expired account.
        expiry_date: ISO date string the subscription ended on.
    """

    def __init__(self, username: str, expiry_date: str) -> None:
        super().__init__(f"Subscription for '{username}' expired on {expiry_date}")
        self.username: str = username
        self.expiry_date: str = expiry_date


class PermissionDeniedError(Exception):
    """Raised when a non-admin user calls an admin-only operation."""

    def __init__(self, message: str = "Administrator privileges required") -> None:
        super().__init__(message)


class UserExistsError(Exception):
    """Raised when creating an account whose username is already taken.

    Args:
        username: The duplicate username.
    """

    def __init__(self, username: str) -> None:
        super().__init__(f"User '{username}' already exists")
        self.username: str = username


class UserNotFoundError(Exception):
    """Raised when an admin operation names an unknown account.

    Args:
        username: The username that was not found.
    """

    def __init__(self, username: str) -> None:
        super().__init__(f"User '{username}' not found")
        self.username: str = username


class DatabaseConnectionError(Exception):
    """Raised when a connection to PostgreSQL cannot be established.

    Args:
        message: Detail from the underlying driver exception.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
