# classes/content_validator.py

import re
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from classes.deploy_digest import byte_length, normalize_path
from classes.errors import InvalidGeneratedContent

ENTRY_DOCUMENT = "index.html"
STYLESHEET = "styles.css"
SCRIPT = "script.js"
MAX_TOTAL_BYTES = 200 * 1024

_DOCTYPE_RE = re.compile(r"<!doctype\s+html\s*>", re.IGNORECASE)
_TITLE_OPEN_RE = re.compile(r"<title(\s[^>]*)?>", re.IGNORECASE)
_TITLE_CLOSE_RE = re.compile(r"</title\s*>", re.IGNORECASE)
_VIEWPORT_RE = re.compile(r"<meta\s[^>]*name\s*=\s*[\"']?viewport\b", re.IGNORECASE)
_EXTERNAL_URL_RE = re.compile(r"\b(href|src)\s*=\s*[\"']?\s*https?://", re.IGNORECASE)

FORBIDDEN_PATTERNS = (
    ("eval()", re.compile(r"\beval\s*\(", re.IGNORECASE)),
    ("new Function()", re.compile(r"\bnew\s+Function\s*\(", re.IGNORECASE)),
    ("document.write()", re.compile(r"\bdocument\.write\s*\(", re.IGNORECASE)),
)


@dataclass(frozen=True)
class ContentCheck:
    ok: bool
    reason: Optional[str] = None


def _lookup(files: Mapping[str, str], name: str) -> Optional[str]:
    if name in files:
        return files[name]
    return files.get("/" + name)


def check_site_files(files: Mapping[str, str]) -> ContentCheck:
    """
    Run the content policy over a generated file set.

    Checks run in a fixed order and stop at the first violation so the
    reported reason is reproducible:
      0. no two paths that normalize to the same deploy path
      1. index.html present
      2. HTML5 doctype
      3. <title>...</title>
      4. viewport meta tag
      5. no absolute http(s) href/src in any file
      6. styles.css / script.js referenced by index.html when present
      7. total size <= 200 KB
      8. no eval( / new Function( / document.write( in any file
    """
    seen = set()
    for path in files:
        deploy_path = normalize_path(path)
        if deploy_path in seen:
            return ContentCheck(False, f"duplicate path {deploy_path}")
        seen.add(deploy_path)

    index_html = _lookup(files, ENTRY_DOCUMENT)
    if not index_html:
        return ContentCheck(False, "missing index.html")

    if not _DOCTYPE_RE.search(index_html):
        return ContentCheck(False, "index.html has no <!doctype html>")

    if not (_TITLE_OPEN_RE.search(index_html) and _TITLE_CLOSE_RE.search(index_html)):
        return ContentCheck(False, "index.html has no <title> element")

    if not _VIEWPORT_RE.search(index_html):
        return ContentCheck(False, "index.html has no viewport meta tag")

    for path, content in files.items():
        if _EXTERNAL_URL_RE.search(content):
            return ContentCheck(False, f"{path} references an external URL")

    for aux in (STYLESHEET, SCRIPT):
        if _lookup(files, aux) is not None and aux not in index_html:
            return ContentCheck(False, f"{aux} is not referenced from index.html")

    total = sum(byte_length(content) for content in files.values())
    if total > MAX_TOTAL_BYTES:
        return ContentCheck(False, f"site is {total} bytes, limit is {MAX_TOTAL_BYTES}")

    for path, content in files.items():
        for label, pattern in FORBIDDEN_PATTERNS:
            if pattern.search(content):
                return ContentCheck(False, f"{path} uses forbidden {label}")

    return ContentCheck(True)


def validate_site_files(files: Dict[str, str]) -> Dict[str, str]:
    """Raise InvalidGeneratedContent on the first policy violation, else return files."""
    result = check_site_files(files)
    if not result.ok:
        raise InvalidGeneratedContent(result.reason or "invalid site")
    return files
