# classes/netlify_client.py

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from classes.errors import DeployError, DeployErrorCode

logger = logging.getLogger("sitedrop_backend")

DEFAULT_API_BASE = "https://api.netlify.com/api/v1"


@dataclass
class DeployTicket:
    deploy_id: str
    required: List[str]
    payload: Dict[str, Any] = field(default_factory=dict)


class NetlifyClient:
    """
    Thin async wrapper over the three Netlify deploy endpoints we use:

        POST /sites/{site_id}/deploys          open a digest deploy
        PUT  /deploys/{deploy_id}/files{path}  upload one required file
        GET  /deploys/{deploy_id}              read deploy state

    Every non-2xx response is turned into a DeployError; nothing is retried here.
    """

    def __init__(
        self,
        auth_token: str,
        site_id: str,
        *,
        base_url: str = DEFAULT_API_BASE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.site_id = site_id
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {auth_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "NetlifyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _log_failure(self, what: str, resp: httpx.Response) -> None:
        logger.warning(f"Netlify {what} failed: {resp.status_code} {resp.text[:500]}")

    async def open_deployment(self, manifest: Dict[str, str]) -> DeployTicket:
        resp = await self._http.post(
            f"/sites/{self.site_id}/deploys",
            json={"files": manifest, "draft": False},
        )

        if not resp.is_success:
            self._log_failure("create deploy", resp)
            if resp.status_code in (401, 403):
                code = DeployErrorCode.AUTH_FAILURE
            elif resp.status_code == 429:
                code = DeployErrorCode.PROVIDER_RATE_LIMIT
            else:
                code = DeployErrorCode.PROVIDER_REQUEST_FAILED
            raise DeployError(code, "create deploy", status=resp.status_code, body=resp.text)

        data = resp.json()
        ticket = DeployTicket(
            deploy_id=str(data["id"]),
            required=list(data.get("required") or []),
            payload=data,
        )
        logger.info(
            f"Opened deploy {ticket.deploy_id}: {len(manifest)} files, "
            f"{len(ticket.required)} required"
        )
        return ticket

    async def upload_file(self, deploy_id: str, path: str, content: bytes) -> None:
        resp = await self._http.put(
            f"/deploys/{deploy_id}/files{quote(path, safe='/')}",
            content=content,
            headers={"Content-Type": "application/octet-stream"},
        )
        if not resp.is_success:
            self._log_failure(f"upload of {path}", resp)
            raise DeployError(
                DeployErrorCode.UPLOAD_FAILED,
                f"upload of {path}",
                status=resp.status_code,
                body=resp.text,
            )

    async def get_deploy(self, deploy_id: str) -> Dict[str, Any]:
        resp = await self._http.get(f"/deploys/{deploy_id}")
        if not resp.is_success:
            self._log_failure("status poll", resp)
            raise DeployError(
                DeployErrorCode.PROVIDER_REQUEST_FAILED,
                "status poll",
                status=resp.status_code,
                body=resp.text,
            )
        return resp.json()
