import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from classes import settings
from classes.deploy_poller import PollSettings
from classes.deployer import SiteDeployer
from classes.error_catalog import ApiError, api_error
from classes.link_store import LinkStore
from classes.llm_client import LlmClient
from classes.rate_limiter import FixedWindowRateLimiter, get_client_ip
from classes.schemas import ErrorResponse, GenerateRequest, GenerateResponse, HealthResponse
from classes.site_generator import SiteGenerator
from classes.site_pipeline import SitePipeline

logger = logging.getLogger("sitedrop_backend")


@dataclass
class Services:
    pipeline: SitePipeline
    rate_limiter: FixedWindowRateLimiter
    links: LinkStore
    openai_ready: bool
    netlify_ready: bool


@lru_cache(maxsize=1)
def get_services() -> Services:
    links = LinkStore(settings.create_session_factory(), settings.BASE_URL)
    try:
        links.create_tables()
    except SQLAlchemyError as e:
        # ping() reports it on /api/health
        logger.error(f"Could not create tables: {e}")

    generator: Optional[SiteGenerator] = None
    if settings.openai_configured():
        generator = SiteGenerator(
            LlmClient(settings.OPENAI_MODEL, api_key=settings.OPENAI_API_KEY, timeout=120)
        )

    deployer: Optional[SiteDeployer] = None
    if settings.netlify_configured():
        deployer = SiteDeployer(
            settings.NETLIFY_AUTH_TOKEN,
            settings.NETLIFY_SITE_ID,
            base_url=settings.NETLIFY_API_BASE,
            poll_settings=PollSettings(timeout=settings.DEPLOY_TIMEOUT_SECONDS),
        )

    return Services(
        pipeline=SitePipeline(generator, deployer, links),
        rate_limiter=FixedWindowRateLimiter(
            settings.RATE_LIMIT_MAX_REQUESTS,
            settings.RATE_LIMIT_WINDOW_SECONDS,
        ),
        links=links,
        openai_ready=generator is not None,
        netlify_ready=deployer is not None,
    )


app = FastAPI(title="sitedrop")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(err: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=err.status,
        content=ErrorResponse(**err.body()).model_dump(),
        headers=err.headers,
    )


def _first_validation_message(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return "Invalid request data"
    return str(errors[0].get("msg", "Invalid request data")).removeprefix("Value error, ")


@app.post("/api/generate")
async def generate(request: Request, services: Services = Depends(get_services)):
    try:
        client_ip = get_client_ip(request.headers, request.client.host if request.client else None)
        limit = services.rate_limiter.check(client_ip)
        if not limit.allowed:
            logger.info(f"Rate limited {client_ip} for {limit.retry_after}s")
            return _error_response(api_error("RATE_LIMIT", headers={
                "Retry-After": str(limit.retry_after or int(settings.RATE_LIMIT_WINDOW_SECONDS)),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(limit.reset_at * 1000)),
            }))

        try:
            body = await request.json()
            req = GenerateRequest.model_validate(body)
        except ValidationError as e:
            return _error_response(api_error("VALIDATION_ERROR", _first_validation_message(e)))
        except ValueError:
            return _error_response(api_error("VALIDATION_ERROR", "Request body must be JSON"))

        result = await services.pipeline.run(req.prompt)

        return JSONResponse(
            content=GenerateResponse(shortUrl=result.short_url, deployUrl=result.deploy_url).model_dump(),
            headers={
                "X-RateLimit-Remaining": str(limit.remaining),
                "X-RateLimit-Reset": str(int(limit.reset_at * 1000)),
            },
        )
    except ApiError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception(f"Unexpected error in /api/generate: {e}")
        return _error_response(api_error("INTERNAL_ERROR"))


@app.get("/s/{slug}")
def redirect(slug: str, services: Services = Depends(get_services)):
    try:
        if not re.fullmatch(rf"[a-z0-9]{{6,{services.links.max_slug_length}}}", slug):
            return JSONResponse(status_code=400, content={"error": "Invalid slug format"})

        long_url = services.links.get_long_url(slug)
        if not long_url:
            return JSONResponse(status_code=404, content={"error": "Short link not found"})

        return RedirectResponse(long_url, status_code=302)
    except Exception as e:
        logger.exception(f"Error in redirect route: {e}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/api/health")
def health(services: Services = Depends(get_services)):
    checks = {
        "database": services.links.ping(),
        "openai": services.openai_ready,
        "netlify": services.netlify_ready,
    }
    ok = all(checks.values())
    payload = HealthResponse(ok=ok, timestamp=datetime.now(timezone.utc).isoformat(), checks=checks)
    return JSONResponse(status_code=200 if ok else 503, content=payload.model_dump())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
