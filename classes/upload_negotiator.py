# classes/upload_negotiator.py

import logging
from typing import Dict, Mapping, Sequence, Tuple

from classes.deploy_digest import iter_fingerprints
from classes.errors import DeployError, DeployErrorCode
from classes.netlify_client import NetlifyClient

logger = logging.getLogger("sitedrop_backend")


def index_by_fingerprint(files: Mapping[str, str]) -> Dict[str, Tuple[str, str]]:
    """fingerprint -> (path, content); the first file wins for duplicate content."""
    index: Dict[str, Tuple[str, str]] = {}
    for path, sha, content in iter_fingerprints(files):
        index.setdefault(sha, (path, content))
    return index


async def upload_required(
    client: NetlifyClient,
    deploy_id: str,
    required: Sequence[str],
    files: Mapping[str, str],
) -> int:
    """
    Upload one file for every fingerprint Netlify asked for, in the order it asked.

    Stops at the first fingerprint with no matching file or the first failed PUT;
    both raise UPLOAD_FAILED. Returns the number of files uploaded.
    """
    if not required:
        return 0

    by_sha = index_by_fingerprint(files)
    uploaded = 0
    for sha in required:
        match = by_sha.get(sha)
        if match is None:
            logger.error(f"Deploy {deploy_id} requires {sha}, which no file in the set hashes to")
            raise DeployError(DeployErrorCode.UPLOAD_FAILED, f"no file with fingerprint {sha}")

        path, content = match
        await client.upload_file(deploy_id, path, content.encode("utf-8"))
        uploaded += 1
        logger.debug(f"Uploaded {path} ({sha}) to deploy {deploy_id}")

    return uploaded
