"""open_deployment request shape and status-code mapping."""

import asyncio

import pytest

from classes.deploy_digest import build_manifest
from classes.errors import DeployError, DeployErrorCode
from classes.netlify_client import NetlifyClient
from tests.fakes import FakeNetlify


def _open(fake: FakeNetlify, manifest: dict):
    async def _run():
        async with NetlifyClient("test-token", "test-site-id", transport=fake.transport) as client:
            return await client.open_deployment(manifest)

    return asyncio.run(_run())


def test_open_deployment_posts_manifest(site_files):
    manifest = build_manifest(site_files)
    fake = FakeNetlify(required=[manifest["/index.html"]])

    ticket = _open(fake, manifest)

    assert ticket.deploy_id == "deploy-123"
    assert ticket.required == [manifest["/index.html"]]

    request = fake.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.netlify.com/api/v1/sites/test-site-id/deploys"
    assert request.headers["authorization"] == "Bearer test-token"
    assert fake.created_with == {"files": manifest, "draft": False}


def test_open_deployment_empty_required(site_files):
    ticket = _open(FakeNetlify(required=[]), build_manifest(site_files))
    assert ticket.required == []


@pytest.mark.parametrize("status, code", [
    (401, DeployErrorCode.AUTH_FAILURE),
    (403, DeployErrorCode.AUTH_FAILURE),
    (429, DeployErrorCode.PROVIDER_RATE_LIMIT),
    (422, DeployErrorCode.PROVIDER_REQUEST_FAILED),
    (500, DeployErrorCode.PROVIDER_REQUEST_FAILED),
])
def test_open_deployment_error_mapping(site_files, status, code):
    with pytest.raises(DeployError) as exc:
        _open(FakeNetlify(create_status=status), build_manifest(site_files))

    assert exc.value.code is code
    assert exc.value.status == status
    assert exc.value.body == "provider says no"


def test_upload_file_percent_encodes_path():
    fake = FakeNetlify()

    async def _run():
        async with NetlifyClient("test-token", "test-site-id", transport=fake.transport) as client:
            await client.upload_file(fake.deploy_id, "/pages/a b#1?.html", b"<p>hi</p>")

    asyncio.run(_run())

    request = fake.requests[0]
    assert request.url.raw_path == b"/api/v1/deploys/deploy-123/files/pages/a%20b%231%3F.html"
    assert fake.uploads == [("/pages/a b#1?.html", b"<p>hi</p>", "application/octet-stream")]
