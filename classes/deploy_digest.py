# classes/deploy_digest.py

import hashlib
from typing import Dict, Iterator, Mapping, Tuple


def normalize_path(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"


def fingerprint(content: str) -> str:
    """SHA-1 hex digest of the UTF-8 bytes; this is what Netlify dedupes on."""
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


def byte_length(content: str) -> int:
    return len(content.encode("utf-8"))


def iter_fingerprints(files: Mapping[str, str]) -> Iterator[Tuple[str, str, str]]:
    """Yield (normalized_path, fingerprint, content) in the file set's order."""
    for name, content in files.items():
        yield normalize_path(name), fingerprint(content), content


def build_manifest(files: Mapping[str, str]) -> Dict[str, str]:
    """
    Map every normalized path to its content fingerprint.

    Pure: same file set in, same manifest out. No network I/O.
    """
    return {path: sha for path, sha, _ in iter_fingerprints(files)}
