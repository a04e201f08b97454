from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..core.errors import ModelError
from ..core.http import post_json


class LLMClient:
    """
    Text-generation capability backed by an OpenAI-compatible
    chat-completions endpoint.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: float = 0.2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.generation_model
        self.url = (base_url or settings.openai_base_url).rstrip("/") + "/chat/completions"
        self.timeout = timeout or settings.request_timeout
        self.temperature = temperature
        self._transport = transport

    async def generate(self, prompt: str) -> str:
        """
        Returns the assistant message content for a single user prompt.
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }

        data = await post_json(
            self.url,
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=self._transport,
        )
        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ModelError("Generation response missing choices[0].message.content.") from exc

        if not isinstance(content, str) or not content.strip():
            raise ModelError("Generation response content is empty.")

        return content.strip()
