import json
from typing import Any, Dict, List, Optional

import httpx

VALID_INDEX = (
    "<!doctype html><html><head><title>T</title>"
    '<meta name="viewport" content="width=device-width, initial-scale=1">'
    "</head><body><h1>Hi</h1></body></html>"
)


class FakeClock:
    """Monotonic clock that only moves when sleep() is awaited."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeNetlify:
    """
    Scriptable stand-in for the Netlify deploy API, served through httpx.MockTransport.

    - create_status / required control POST /sites/{id}/deploys
    - upload_status controls every PUT
    - poll_states is consumed one per GET; the last entry repeats
    """

    def __init__(
        self,
        *,
        deploy_id: str = "deploy-123",
        required: Optional[List[str]] = None,
        create_status: int = 200,
        upload_status: int = 200,
        poll_states: Optional[List[Dict[str, Any]]] = None,
        poll_status: int = 200,
    ):
        self.deploy_id = deploy_id
        self.required = required or []
        self.create_status = create_status
        self.upload_status = upload_status
        self.poll_states = poll_states or [{"state": "ready", "ssl_url": "https://site.netlify.app"}]
        self.poll_status = poll_status
        self.requests: List[httpx.Request] = []
        self.created_with: Optional[Dict[str, Any]] = None
        self.uploads: List[tuple] = []
        self.polls = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/deploys"):
            if self.create_status != 200:
                return httpx.Response(self.create_status, text="provider says no")
            self.created_with = json.loads(request.content)
            return httpx.Response(200, json={"id": self.deploy_id, "required": self.required})

        if request.method == "PUT":
            prefix = f"/api/v1/deploys/{self.deploy_id}/files"
            self.uploads.append((path[len(prefix):], request.content, request.headers.get("content-type")))
            if self.upload_status != 200:
                return httpx.Response(self.upload_status, text="upload broke")
            return httpx.Response(200, json={})

        if request.method == "GET":
            if self.poll_status != 200:
                return httpx.Response(self.poll_status, text="poll broke")
            state = self.poll_states[min(self.polls, len(self.poll_states) - 1)]
            self.polls += 1
            return httpx.Response(200, json={"id": self.deploy_id, **state})

        return httpx.Response(404)
