"""Exception types shared by the CheckMate integration services."""

from typing import Optional


class CheckmateError(Exception):
    """Base error for the integration layer."""

    code = "CHECKMATE_ERROR"

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class RateLimitExceeded(CheckmateError):
    """Raised when a caller exceeds its request budget for the current window."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, result):
        super().__init__("Rate limit exceeded. Please wait before trying again.")
        self.result = result

    @property
    def retry_after_seconds(self) -> int:
        # Round up so clients never retry before the window rolls over
        return max(-(-self.result.reset_in_ms // 1000), 1)


class DnsLookupError(CheckmateError, LookupError):
    """DNS-over-HTTPS query failed, timed out or returned an unusable answer."""

    code = "UPSTREAM_LOOKUP_FAILURE"


class NotionAPIError(CheckmateError):
    """Notion API returned an error response or could not be reached."""

    code = "NOTION_API_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, cause: Optional[Exception] = None):
        super().__init__(message, cause)
        self.status_code = status_code


class NotionNotConfiguredError(CheckmateError):
    """Notion API key or client database id is missing."""

    code = "NOTION_NOT_CONFIGURED"


class SyncError(CheckmateError):
    """Directory sync aborted by an upstream failure.

    ``report`` holds the counts accumulated before the failure.
    """

    code = "UPSTREAM_SYNC_FAILURE"

    def __init__(self, message: str, report, cause: Optional[Exception] = None):
        super().__init__(message, cause)
        self.report = report
