import json
import logging
from typing import Any, Dict, List, Optional, Union

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core.config import settings
from app.core.exceptions import AIError, AIKillSwitchError
from app.schemas.platform import AIMessage, AIResponse, AIUsage, ChatMessage, ChatOptions

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"

Prompt = Union[str, List[ChatMessage], List[Dict[str, Any]]]


def to_messages(prompt: Prompt) -> List[Dict[str, Any]]:
    """Normalize a bare prompt string or a message list to OpenRouter's wire shape."""
    if isinstance(prompt, str):
        return [{"role": "user", "content": prompt}]
    messages = []
    for message in prompt:
        if isinstance(message, ChatMessage):
            message = message.model_dump(exclude_none=True)
        messages.append(message)
    return messages


class AIOrchestrator:
    """Chat completions over OpenRouter with kill-switch, retries and a fallback model."""

    @staticmethod
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type((requests.exceptions.RequestException, AIError)),
        reraise=True
    )
    def _do_call(messages: List[Dict[str, Any]], model_name: str, options: ChatOptions) -> Dict[str, Any]:
        """Internal method to perform the actual API call with retries."""
        logger.info(f"Calling AI Model: {model_name}")

        payload: Dict[str, Any] = {
            "model": model_name,
            "messages": messages,
            "temperature": options.temperature if options.temperature is not None else settings.ai.temperature,
        }
        if options.max_tokens:
            payload["max_tokens"] = options.max_tokens

        try:
            response = requests.post(
                url=OPENROUTER_URL,
                headers={
                    "Authorization": f"Bearer {settings.ai.openrouter_api_key}",
                    "Content-Type": "application/json",
                    "X-Title": settings.app_name,
                },
                data=json.dumps(payload),
                timeout=settings.ai.timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout:
            logger.error("AI service timeout.")
            raise AIError("AI service reached timeout limit.")
        except requests.exceptions.HTTPError as e:
            logger.error(f"AI service HTTP error: {e}")
            raise AIError(f"AI service returned error: {e.response.status_code}")
        except ValueError as e:
            logger.error(f"AI service returned invalid JSON: {e}")
            raise AIError("AI service returned an invalid response.")

    @staticmethod
    def _to_response(body: Dict[str, Any], model_name: str) -> AIResponse:
        try:
            choice = body["choices"][0]
        except (KeyError, IndexError, TypeError):
            raise AIError("AI service returned no choices.")
        message = choice.get("message") or {}
        usage = body.get("usage")
        return AIResponse(
            message=AIMessage(role=message.get("role", "assistant"), content=message.get("content") or ""),
            finish_reason=choice.get("finish_reason"),
            model=body.get("model", model_name),
            usage=AIUsage(**usage) if isinstance(usage, dict) else None,
        )

    @classmethod
    def chat(cls, prompt: Prompt, options: Optional[ChatOptions] = None) -> AIResponse:
        """
        Centralized chat completion with kill-switch, retries and fallback.
        Uses ``options.model`` when given, otherwise the configured model.
        """
        options = options or ChatOptions()

        if settings.ai.kill_switch:
            logger.warning("AI Kill-switch is active. Blocking request.")
            raise AIKillSwitchError()

        if not settings.ai.openrouter_api_key:
            logger.error("OpenRouter API Key missing.")
            raise AIError("AI service configuration error.")

        messages = to_messages(prompt)
        primary = options.model or settings.ai.model_name
        try:
            return cls._to_response(cls._do_call(messages, primary, options), primary)
        except (requests.exceptions.RequestException, AIError) as e:
            logger.warning(f"Primary model {primary} failed: {e}. Attempting fallback.")
            fallback = settings.ai.fallback_model
            try:
                return cls._to_response(cls._do_call(messages, fallback, options), fallback)
            except (requests.exceptions.RequestException, AIError) as fe:
                logger.error(f"Fallback model {fallback} also failed: {fe}")
                raise AIError(f"AI service completely unavailable (Primary: {e}, Fallback: {fe})")
