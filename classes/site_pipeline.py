# classes/site_pipeline.py

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from classes.deployer import SiteDeployer
from classes.error_catalog import api_error
from classes.errors import DeployError, GeneratorError, InvalidGeneratedContent, ShortLinkError
from classes.link_store import LinkStore
from classes.site_generator import SiteGenerator

logger = logging.getLogger("sitedrop_backend")


@dataclass(frozen=True)
class PipelineResult:
    short_url: str
    deploy_url: str
    slug: str


class SitePipeline:
    """
    prompt -> generated files -> Netlify deploy -> short link.

    Every failure leaves as an ApiError with a stable code and a user-safe
    message; the underlying cause is only logged.
    """

    def __init__(
        self,
        generator: Optional[SiteGenerator],
        deployer: Optional[SiteDeployer],
        links: LinkStore,
    ):
        self.generator = generator
        self.deployer = deployer
        self.links = links

    async def run(self, prompt: str) -> PipelineResult:
        if self.generator is None:
            logger.error("OPENAI_API_KEY not configured")
            raise api_error("CONFIGURATION_ERROR")
        if self.deployer is None:
            logger.error("Netlify configuration missing")
            raise api_error("CONFIGURATION_ERROR")

        # the OpenAI client is sync; keep it off the event loop
        try:
            files = await asyncio.to_thread(self.generator.generate, prompt)
        except InvalidGeneratedContent:
            raise api_error("MODEL_INVALID_OUTPUT")
        except GeneratorError:
            raise api_error("OPENAI_ERROR")

        try:
            deploy_url = await self.deployer.deploy(files)
        except DeployError as e:
            logger.error(f"Netlify deployment error: {e} body={(e.body or '')[:500]!r}")
            raise api_error(e.code.value)

        try:
            link = await asyncio.to_thread(self.links.create_short_link, deploy_url)
        except (ShortLinkError, SQLAlchemyError) as e:
            logger.error(f"Database error: {e}")
            raise api_error("DATABASE_ERROR")

        logger.info(f"Published {deploy_url} as {link.short_url}")
        return PipelineResult(short_url=link.short_url, deploy_url=deploy_url, slug=link.slug)
