# classes/errors.py

from enum import Enum
from typing import Optional


class DeployErrorCode(str, Enum):
    AUTH_FAILURE = "AUTH_FAILURE"
    PROVIDER_RATE_LIMIT = "PROVIDER_RATE_LIMIT"
    PROVIDER_REQUEST_FAILED = "PROVIDER_REQUEST_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    DEPLOY_FAILED = "DEPLOY_FAILED"
    DEPLOY_TIMEOUT = "DEPLOY_TIMEOUT"
    NO_PUBLIC_URL = "NO_PUBLIC_URL"
    DEPLOY_ERROR = "DEPLOY_ERROR"


class DeployError(Exception):
    """
    Single error type for the deploy pipeline. Callers switch on `code`.

    `status` / `body` carry the raw provider response when there was one;
    `cause` keeps the original exception for DEPLOY_ERROR.
    These are for logs only and must not reach the end user.
    """

    def __init__(
        self,
        code: DeployErrorCode,
        detail: str = "",
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.code = code
        self.detail = detail
        self.status = status
        self.body = body
        self.cause = cause
        msg = code.value
        if detail:
            msg = f"{msg}: {detail}"
        if status is not None:
            msg = f"{msg} (status={status})"
        super().__init__(msg)


class InvalidGeneratedContent(Exception):
    """Generated site files broke the content policy or the expected shape."""

    code = "INVALID_GENERATED_CONTENT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"{self.code}: {reason}")


class GeneratorError(Exception):
    """The language model call itself failed (transport, auth, quota...)."""


class ShortLinkError(Exception):
    """No short link could be stored."""
