# classes/site_generator.py

import json
import logging
import re
from typing import Dict

import openai
from pydantic import BaseModel, ValidationError

from classes.content_validator import validate_site_files
from classes.errors import GeneratorError, InvalidGeneratedContent
from classes.llm_client import LlmClient, MaxRetryErrorsException

logger = logging.getLogger("sitedrop_backend")

MAX_PROMPT_CHARS = 500

SYSTEM_PROMPT = (
    "You generate minimal static one-page websites. Output MUST be strict JSON of the form "
    '{"files": {"index.html": "...", "styles.css": "...", "script.js": "..."}} where '
    "index.html is required and styles.css / script.js are optional. "
    "index.html must start with <!doctype html>, have a <title> and a "
    '<meta name="viewport" content="width=device-width, initial-scale=1">. '
    "No external assets, analytics, CDNs or remote URLs. No eval, new Function or document.write. "
    "Keep total size <= 200 KB. If styles.css or script.js are present, reference them "
    "relatively from index.html."
)

SITE_FILES_FORMAT = {
    "format": {
        "type": "json_schema",
        "name": "site_files",
        "schema": {
            "type": "object",
            "properties": {
                "files": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                },
            },
            "required": ["files"],
            "additionalProperties": False,
        },
        "strict": False,
    }
}


class SiteFiles(BaseModel):
    files: Dict[str, str]


def clean_triple_backticks(text: str) -> str:
    pattern = r'```[a-zA-Z]*\n?|```\n?'
    return re.sub(pattern, '', text)


def parse_site_files(raw: str) -> Dict[str, str]:
    """Model output text -> validated file set. Raises InvalidGeneratedContent."""
    try:
        data = json.loads(clean_triple_backticks(raw).strip())
        site = SiteFiles.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise InvalidGeneratedContent(f"output is not a file map: {e.__class__.__name__}") from e

    return validate_site_files(site.files)


class SiteGenerator:
    def __init__(self, llm: LlmClient):
        self.llm = llm

    def generate(self, prompt: str) -> Dict[str, str]:
        if len(prompt) > MAX_PROMPT_CHARS:
            raise ValueError(f"prompt is longer than {MAX_PROMPT_CHARS} characters")

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            raw = self.llm.invoke(
                messages,
                text=SITE_FILES_FORMAT,
                log=lambda msg: logger.info(f"[LLM-RETRY] {msg}"),
            )
        except (openai.OpenAIError, MaxRetryErrorsException) as e:
            logger.error(f"Site generation call failed: {e}")
            raise GeneratorError(str(e)) from e

        try:
            files = parse_site_files(raw)
        except InvalidGeneratedContent as e:
            logger.warning(f"Rejected generated site: {e.reason}")
            raise

        logger.info(f"Generated site with files {sorted(files)} (usage={self.llm.last_usage})")
        return files
