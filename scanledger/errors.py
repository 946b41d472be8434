"""例外階層。ゲート（検証・レート制限）とストレージの失敗を区別する。"""
from __future__ import annotations


class ScanLedgerError(Exception):
    """全例外の基底。"""


# --- 入力検証 ---------------------------------------------------------------


class ValidationError(ScanLedgerError):
    """入力が欠落・不正・範囲外。ストレージに触れる前に送出される。"""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class MissingFieldError(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}", field)


class TypeMismatchError(ValidationError):
    def __init__(self, field: str, expected: str) -> None:
        super().__init__(f"Field {field} must be of type {expected}", field)
        self.expected = expected


class RangeError(ValidationError):
    pass


class LengthError(ValidationError):
    pass


class CustomValidationError(ValidationError):
    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Validation failed for {field}: {reason}", field)
        self.reason = reason


# --- レート制限 -------------------------------------------------------------


class RateLimitError(ScanLedgerError):
    pass


class RateLimitExceededError(RateLimitError):
    def __init__(self, operation: str, retry_after: int) -> None:
        super().__init__(
            f"Rate limit exceeded for {operation}. Try again in {retry_after} seconds."
        )
        self.operation = operation
        self.retry_after = retry_after


# --- 対象なし ---------------------------------------------------------------


class NotFoundError(ScanLedgerError):
    pass


class NoActiveSessionError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("No scan session available to export")


# --- ストレージ -------------------------------------------------------------


class StorageError(ScanLedgerError):
    """SQLite が失敗を報告した（接続・制約・I/O）。"""


class DuplicateSessionError(StorageError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session already exists: {session_id}")
        self.session_id = session_id


class ConstraintError(StorageError):
    pass


class WriteError(StorageError):
    pass


class BatchWriteError(StorageError):
    """バッチ内で1件以上失敗。バッチ全体はロールバック済み。"""

    def __init__(self, failed_count: int, total: int) -> None:
        super().__init__(f"Batch insert failed: {failed_count} errors (of {total})")
        self.failed_count = failed_count
        self.total = total
