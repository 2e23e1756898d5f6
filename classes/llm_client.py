import random
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar

import openai
from openai import OpenAI

T = TypeVar("T")


class MaxRetryErrorsException(Exception):
    pass


_RETRYABLE = (openai.RateLimitError, openai.APITimeoutError, openai.APIConnectionError)


def call_with_retries_sync(
    fn: Callable[[], T],
    *,
    retries: int = 2,
    base_delay: float = 2.0,
    max_delay: float = 20.0,
    log: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run a sync LLM call, retrying only 429 / timeout / connection errors
    with jittered exponential backoff. Anything else is raised at once.
    """
    last_exception: Exception | None = None
    delay = base_delay

    for attempt in range(retries):
        start_time = time.time()
        try:
            return fn()
        except _RETRYABLE as e:
            elapsed = time.time() - start_time
            last_exception = e
            wait = random.uniform(delay * 0.95, delay * 1.35)
            delay = min(delay * 2, max_delay)
            if log:
                log(f"Attempt {attempt+1} got {type(e).__name__} (elapsed={elapsed:.2f}s), backing off ~{wait:.1f}s.")
            if attempt + 1 < retries:
                sleep(wait)

    raise MaxRetryErrorsException(f"All {retries} retry attempts failed.") from last_exception


class LlmClient:
    """
    Minimal wrapper over the OpenAI Responses API:

        text = llm.invoke([{"role": "system", ...}, {"role": "user", ...}])

    Keeps running token usage in `last_usage`.
    """

    def __init__(
        self,
        model_name: str,
        *,
        api_key: str | None = None,
        timeout: float | None = None,
        client: Any = None,
    ):
        self.model_name = model_name
        self.last_usage: Optional[Dict[str, int]] = None

        if client is None:
            client_kwargs: Dict[str, Any] = {"max_retries": 0}
            if api_key:
                client_kwargs["api_key"] = api_key
            if timeout is not None:
                client_kwargs["timeout"] = timeout
            client = OpenAI(**client_kwargs)
        self._client = client

    def _merge_usage(self, resp: Any) -> None:
        usage = getattr(resp, "usage", None)
        if usage is None:
            return
        inc = {
            "prompt_token_count": getattr(usage, "input_tokens", 0) or 0,
            "candidates_token_count": getattr(usage, "output_tokens", 0) or 0,
            "total_token_count": getattr(usage, "total_tokens", 0) or 0,
        }
        if self.last_usage is None:
            self.last_usage = inc
            return
        for k, v in inc.items():
            self.last_usage[k] = (self.last_usage.get(k, 0) or 0) + (v or 0)

    def _invoke_once(self, messages: List[Dict[str, str]], **params: Any) -> str:
        """
        Single HTTP call without retries/backoff.
        """
        resp = self._client.responses.create(
            model=self.model_name,
            input=messages,
            **params,
        )
        self._merge_usage(resp)

        text = getattr(resp, "output_text", "") or ""
        return text.strip()

    def invoke(
        self,
        messages: List[Dict[str, str]],
        *,
        retries: int = 2,
        log: Callable[[str], None] | None = None,
        **params: Any,
    ) -> str:
        return call_with_retries_sync(
            lambda: self._invoke_once(messages, **params),
            retries=retries,
            log=log,
        )
