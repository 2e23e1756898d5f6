# classes/error_catalog.py

from dataclasses import dataclass
from typing import Dict, Tuple

from classes.errors import DeployErrorCode


@dataclass(eq=False)
class ApiError(Exception):
    code: str
    status: int
    message: str
    headers: Dict[str, str] | None = None

    def body(self) -> dict:
        return {"error": self.code, "message": self.message}


# code -> (HTTP status, user-facing hint). Provider text never goes in here.
ERROR_CATALOG: Dict[str, Tuple[int, str]] = {
    "VALIDATION_ERROR": (400, "Invalid request data"),
    "RATE_LIMIT": (429, "Too many requests. Please try again later."),
    "CONFIGURATION_ERROR": (500, "Service configuration error"),
    "MODEL_INVALID_OUTPUT": (400, "The generator returned an invalid site. Try a shorter or simpler prompt."),
    "OPENAI_ERROR": (500, "Failed to generate site"),
    DeployErrorCode.AUTH_FAILURE.value: (500, "Netlify auth misconfigured. Check NETLIFY_AUTH_TOKEN / NETLIFY_SITE_ID."),
    DeployErrorCode.PROVIDER_RATE_LIMIT.value: (429, "Netlify rate limit exceeded. Please try again later."),
    DeployErrorCode.PROVIDER_REQUEST_FAILED.value: (502, "The hosting provider rejected the request. Please retry."),
    DeployErrorCode.UPLOAD_FAILED.value: (500, "Couldn't upload required files. Please retry."),
    DeployErrorCode.DEPLOY_FAILED.value: (500, "The hosting provider failed to publish the site. Please retry."),
    DeployErrorCode.DEPLOY_TIMEOUT.value: (504, "Deployment took too long. Please retry."),
    DeployErrorCode.NO_PUBLIC_URL.value: (502, "The deployment finished without a public URL. Please retry."),
    DeployErrorCode.DEPLOY_ERROR.value: (500, "Failed to deploy site"),
    "DATABASE_ERROR": (500, "Failed to create short link"),
    "INTERNAL_ERROR": (500, "An unexpected error occurred"),
}


def api_error(code: str, message: str | None = None, headers: Dict[str, str] | None = None) -> ApiError:
    status, hint = ERROR_CATALOG.get(code, ERROR_CATALOG["INTERNAL_ERROR"])
    return ApiError(code=code, status=status, message=message or hint, headers=headers)
