"""Backend communication for OpenAI-compatible chat completion APIs."""

import logging
import time
from typing import Dict, List

import requests

from .exceptions import BackendError

logger = logging.getLogger(__name__)


def call_chat_completion(messages: List[Dict], config, temperature: float = None) -> str:
    """Call the chat completion endpoint and return the assistant's text.

    Connection errors are retried with exponential backoff
    (config.BACKEND_RETRY_ATTEMPTS tries, starting at
    config.BACKEND_RETRY_INITIAL_DELAY seconds). Timeouts and HTTP errors are
    not retried.

    Args:
        messages: Chat messages in OpenAI format (role/content dicts)
        config: ServerConfig instance
        temperature: Sampling temperature (defaults to config.DEFAULT_TEMPERATURE)

    Returns:
        Content of the first choice's message

    Raises:
        BackendError: If no API key is configured or the response has no message content
        requests.RequestException: If the request fails
    """
    if not config.OPENAI_API_KEY:
        raise BackendError("OPENAI_API_KEY is not configured")

    endpoint = f"{config.OPENAI_ENDPOINT}/chat/completions"

    payload = {
        "model": config.BACKEND_MODEL,
        "messages": messages,
        "temperature": config.DEFAULT_TEMPERATURE if temperature is None else temperature,
        "max_tokens": config.MAX_TOKENS,
    }
    headers = {"Authorization": f"Bearer {config.OPENAI_API_KEY}"}

    # Set timeout as tuple (connect_timeout, read_timeout)
    timeout = (config.BACKEND_CONNECT_TIMEOUT, config.BACKEND_READ_TIMEOUT)

    attempts = max(1, config.BACKEND_RETRY_ATTEMPTS)
    delay = config.BACKEND_RETRY_INITIAL_DELAY
    for attempt in range(1, attempts + 1):
        try:
            response = requests.post(endpoint, json=payload, headers=headers, timeout=timeout)
            break
        except requests.ConnectionError as e:
            if attempt == attempts:
                raise
            logger.warning(f"[BACKEND] Connection failed (attempt {attempt}/{attempts}), retrying in {delay}s: {e}")
            time.sleep(delay)
            delay *= 2

    response.raise_for_status()

    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise BackendError(f"Unexpected response from chat backend: {e!s}") from e

    if content is None:
        raise BackendError("Chat backend returned an empty message")
    return content
