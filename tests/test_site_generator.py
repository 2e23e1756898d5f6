import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from classes.errors import GeneratorError, InvalidGeneratedContent
from classes.llm_client import LlmClient, MaxRetryErrorsException, call_with_retries_sync
from classes.site_generator import SiteGenerator, parse_site_files
from tests.fakes import VALID_INDEX


class StubResponses:
    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        out = self.outputs.pop(0)
        if isinstance(out, Exception):
            raise out
        return SimpleNamespace(
            output_text=out,
            usage=SimpleNamespace(input_tokens=10, output_tokens=20, total_tokens=30),
        )


def _generator(*outputs):
    responses = StubResponses(outputs)
    llm = LlmClient("gpt-4.1-mini", client=SimpleNamespace(responses=responses))
    return SiteGenerator(llm), responses


def test_generate_returns_validated_files():
    gen, responses = _generator(json.dumps({"files": {"index.html": VALID_INDEX}}))

    files = gen.generate("Landing page for a coworking space")

    assert files == {"index.html": VALID_INDEX}
    call = responses.calls[0]
    assert call["model"] == "gpt-4.1-mini"
    assert call["input"][0]["role"] == "system"
    assert call["input"][1] == {"role": "user", "content": "Landing page for a coworking space"}
    assert call["text"]["format"]["name"] == "site_files"
    assert gen.llm.last_usage["total_token_count"] == 30


def test_fenced_json_is_accepted():
    raw = "```json\n" + json.dumps({"files": {"index.html": VALID_INDEX}}) + "\n```"
    assert parse_site_files(raw) == {"index.html": VALID_INDEX}


@pytest.mark.parametrize("raw", [
    "not json",
    json.dumps({"index.html": VALID_INDEX}),
    json.dumps({"files": {"index.html": 42}}),
])
def test_wrong_shape_is_invalid_output(raw):
    with pytest.raises(InvalidGeneratedContent):
        parse_site_files(raw)


def test_policy_violation_is_invalid_output():
    html = VALID_INDEX.replace("</body>", '<script src="https://cdn.example.com/x.js"></script></body>')
    gen, _ = _generator(json.dumps({"files": {"index.html": html}}))

    with pytest.raises(InvalidGeneratedContent):
        gen.generate("site")


def test_api_failure_is_generator_error():
    gen, _ = _generator(openai.OpenAIError("boom"))

    with pytest.raises(GeneratorError):
        gen.generate("site")


def test_prompt_length_enforced():
    gen, responses = _generator()
    with pytest.raises(ValueError):
        gen.generate("a" * 501)
    assert responses.calls == []


def _timeout():
    return openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/responses"))


def test_retries_only_retryable_errors():
    calls = []
    sleeps = []

    def fn():
        calls.append(1)
        if len(calls) < 3:
            raise _timeout()
        return "ok"

    assert call_with_retries_sync(fn, retries=3, sleep=sleeps.append) == "ok"
    assert len(calls) == 3
    assert len(sleeps) == 2


def test_retries_exhausted():
    def fn():
        raise _timeout()

    with pytest.raises(MaxRetryErrorsException):
        call_with_retries_sync(fn, retries=2, sleep=lambda s: None)


def test_non_retryable_raises_immediately():
    calls = []

    def fn():
        calls.append(1)
        raise openai.OpenAIError("bad request")

    with pytest.raises(openai.OpenAIError):
        call_with_retries_sync(fn, retries=3, sleep=lambda s: None)
    assert len(calls) == 1
