import logging
from typing import Dict, List, Optional

import httpx

from app.settings import settings
from domain.errors import ServiceFailure

logger = logging.getLogger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"


async def _post_chat(url: str, headers: Dict[str, str], payload: Dict) -> Dict:
    # single attempt: retry and timeout policy belongs to the caller
    try:
        async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SECONDS) as client:
            response = await client.post(url, headers=headers, json=payload)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise ServiceFailure(f"Generative service returned HTTP {status}") from exc
    except httpx.HTTPError as exc:
        raise ServiceFailure(f"Generative service request failed: {exc}") from exc
    except ValueError as exc:
        raise ServiceFailure("Generative service returned a non-JSON body") from exc


def _message_content(data: Dict) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ServiceFailure("Generative service response had no message content") from exc
    if content is None:
        raise ServiceFailure("Generative service response had no message content")
    return str(content)


async def _openai_chat(messages: List[Dict], model: str) -> str:
    headers = {"Authorization": f"Bearer {settings.OPENAI_API_KEY}"}
    payload = {"model": model, "messages": messages, "temperature": settings.LLM_TEMPERATURE}
    data = await _post_chat(OPENAI_CHAT_URL, headers, payload)
    return _message_content(data)


async def _openrouter_chat(messages: List[Dict], model: str) -> str:
    headers = {
        "Authorization": f"Bearer {settings.OPENROUTER_API_KEY}",
        "HTTP-Referer": "http://localhost",
        "X-Title": settings.APP_NAME,
    }
    payload = {"model": model, "messages": messages, "temperature": settings.LLM_TEMPERATURE}
    data = await _post_chat(OPENROUTER_CHAT_URL, headers, payload)
    return _message_content(data)


async def _choose_and_call(messages: List[Dict]) -> str:
    if settings.OPENAI_API_KEY:
        return await _openai_chat(messages, settings.OPENAI_MODEL)
    if settings.OPENROUTER_API_KEY:
        return await _openrouter_chat(messages, settings.OPENROUTER_MODEL)
    raise ServiceFailure("No LLM provider configured")


async def generate_text(prompt: str, *, system: Optional[str] = None) -> str:
    """Send one prompt to the configured provider and return the raw reply text."""
    messages: List[Dict] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    logger.debug("Sending prompt of %d chars", len(prompt))
    text = await _choose_and_call(messages)
    logger.debug("Received reply of %d chars", len(text))
    return text
