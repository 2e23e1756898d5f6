# classes/schemas.py

from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from classes.site_generator import MAX_PROMPT_CHARS


class GenerateRequest(BaseModel):
    prompt: str = Field(...)

    @field_validator("prompt", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("prompt")
    @classmethod
    def _length(cls, v: str) -> str:
        if not v:
            raise ValueError("Prompt cannot be empty")
        if len(v) > MAX_PROMPT_CHARS:
            raise ValueError(f"Prompt must be {MAX_PROMPT_CHARS} characters or less")
        return v


class GenerateResponse(BaseModel):
    shortUrl: str
    deployUrl: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool
    timestamp: str
    checks: Dict[str, bool] = Field(default_factory=dict)
