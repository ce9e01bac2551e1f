"""Lazily constructed OpenAI client and a JSON-mode chat helper."""
import json
import logging
from typing import Dict, Optional

from openai import OpenAI

from dining_app.core.config import get_settings

log = logging.getLogger(__name__)

_client: Optional[OpenAI] = None


class LLMNotConfigured(Exception):
    # no OPENAI_API_KEY; nutrition estimates and prompt parsing are unavailable
    pass


class LLMResponseError(Exception):
    """The model answered with nothing, or with something that is not a JSON object."""


def get_openai_client() -> OpenAI:
    global _client
    if _client is None:
        api_key = get_settings().OPENAI_API_KEY
        if not api_key:
            raise LLMNotConfigured(
                "OPENAI_API_KEY environment variable is not set. Please configure it to use nutrition features."
            )
        _client = OpenAI(api_key=api_key)
    return _client


def reset_client():
    global _client
    _client = None


def complete_json(system_prompt: str, user_prompt: str, temperature: float, max_tokens: int) -> Dict:
    """Run a JSON-mode chat completion and return the decoded object."""
    client = get_openai_client()
    chat = client.chat.completions.create(
        model=get_settings().OPENAI_MODEL,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        response_format={"type": "json_object"},
        temperature=temperature,
        max_tokens=max_tokens,
    )
    text = chat.choices[0].message.content if chat and chat.choices else None
    if not text:
        raise LLMResponseError("No response from OpenAI")
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMResponseError("OpenAI returned non-JSON content") from e
    if not isinstance(obj, dict):
        raise LLMResponseError("OpenAI returned a JSON value that is not an object")
    return obj
