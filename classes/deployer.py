# classes/deployer.py

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from classes.deploy_digest import build_manifest
from classes.deploy_poller import DeployPoller, PollSettings
from classes.errors import DeployError, DeployErrorCode
from classes.netlify_client import DEFAULT_API_BASE, NetlifyClient
from classes.upload_negotiator import upload_required

logger = logging.getLogger("sitedrop_backend")

# Checked in this order; first non-empty value wins.
PUBLIC_URL_FIELDS = ("ssl_url", "url", "deploy_url")


def extract_public_url(deploy: Mapping[str, Any]) -> str:
    for key in PUBLIC_URL_FIELDS:
        value = deploy.get(key)
        if value:
            return str(value)
    raise DeployError(DeployErrorCode.NO_PUBLIC_URL, f"deploy {deploy.get('id')} has no URL")


class SiteDeployer:
    """
    Publishes a file set to one Netlify site:

        manifest -> open deploy -> upload required -> poll until ready -> public URL

    Each deploy() call opens its own HTTP client and deploy id; nothing is
    shared between calls, so concurrent requests can use one SiteDeployer.
    """

    def __init__(
        self,
        auth_token: str,
        site_id: str,
        *,
        base_url: str = DEFAULT_API_BASE,
        poll_settings: Optional[PollSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.auth_token = auth_token
        self.site_id = site_id
        self.base_url = base_url
        self.poll_settings = poll_settings or PollSettings()
        self._transport = transport
        self._poller_kwargs: Dict[str, Any] = {}
        if sleep is not None:
            self._poller_kwargs["sleep"] = sleep
        if clock is not None:
            self._poller_kwargs["clock"] = clock

    def _client(self) -> NetlifyClient:
        return NetlifyClient(
            self.auth_token,
            self.site_id,
            base_url=self.base_url,
            transport=self._transport,
        )

    async def deploy(self, files: Mapping[str, str]) -> str:
        try:
            async with self._client() as client:
                manifest = build_manifest(files)
                ticket = await client.open_deployment(manifest)

                if ticket.required:
                    await upload_required(client, ticket.deploy_id, ticket.required, files)

                poller = DeployPoller(client, self.poll_settings, **self._poller_kwargs)
                ready = await poller.await_ready(ticket.deploy_id)

            url = extract_public_url(ready)
            logger.info(f"Deploy {ticket.deploy_id} live at {url}")
            return url

        except DeployError:
            raise
        except Exception as e:
            logger.exception("Unexpected failure while deploying")
            raise DeployError(DeployErrorCode.DEPLOY_ERROR, repr(e), cause=e) from e
