import json
import logging

import requests

from .config import LLM_TIMEOUT, OPENAI_API_KEY, OPENAI_API_URL, OPENAI_MODEL
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """The completion endpoint could not produce a usable JSON reply."""


def extract_json(text):
    text = (text or "").strip()
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        raise LLMError(f"No JSON object found in LLM response: {text[:200]}")
    json_str = text[start:end + 1]
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        raise LLMError(f"Invalid JSON in LLM response: {e}. Text: {json_str[:200]}")


def complete_json(prompt, api_key=None):
    """Send ``prompt`` to the chat-completions endpoint and return the parsed JSON reply."""
    api_key = api_key or OPENAI_API_KEY
    if not api_key:
        raise LLMError("OPENAI_API_KEY is not configured")

    payload = {
        "model": OPENAI_MODEL,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "response_format": {"type": "json_object"},
        "temperature": 0.3,
    }
    headers = {"Authorization": f"Bearer {api_key}"}

    try:
        resp = requests.post(OPENAI_API_URL, json=payload, headers=headers, timeout=LLM_TIMEOUT)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        raise LLMError(f"LLM request failed: {e}") from e

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise LLMError(f"Unexpected LLM response shape: {str(data)[:200]}") from e

    if isinstance(content, dict):
        return content
    result = extract_json(str(content))
    logger.debug("LLM %s returned keys %s", OPENAI_MODEL, sorted(result))
    return result
