"""Client for an OpenAI-compatible chat-completion extraction service.

Credentials and input are checked before any request is made; anything
other than a JSON object in the reply is reported as a failure rather
than defaulted.
"""

import json
import os
from typing import Any

import httpx

from scanrecon.errors import ConfigurationError, EmptyInputError, ExtractionFailure
from scanrecon.utils.config import ExtractionConfig
from scanrecon.utils.logger import get_logger

from .prompts import build_messages

logger = get_logger(__name__)


def parse_record(content: str | None) -> dict[str, Any]:
    """Parse the model's reply into an untrusted record.

    Args:
        content: Raw message content returned by the service.

    Returns:
        The decoded JSON object.

    Raises:
        ExtractionFailure: If the content is empty, not JSON, or not an object.
    """
    if not content or not content.strip():
        raise ExtractionFailure("Extraction service returned empty output")
    try:
        record = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ExtractionFailure(f"Extraction output is not valid JSON: {exc}") from exc
    if not isinstance(record, dict):
        raise ExtractionFailure(
            f"Extraction output is a {type(record).__name__}, expected an object"
        )
    return record


class StructuringClient:
    """Sends OCR text to the extraction service and returns its raw record.

    Args:
        config: Endpoint, model, and credential settings.
        http_client: Optional preconfigured ``httpx.Client``.
    """

    def __init__(
        self,
        config: ExtractionConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.config = config or ExtractionConfig()
        self._http_client = http_client

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/v1/chat/completions"

    def api_key(self) -> str:
        """Read the API key from the environment.

        Raises:
            ConfigurationError: If the variable is unset or empty.
        """
        key = os.environ.get(self.config.api_key_env, "").strip()
        if not key:
            raise ConfigurationError(f"Missing {self.config.api_key_env} in env.")
        return key

    def structure(self, text: str, file_name: str | None = None) -> dict[str, Any]:
        """Extract a structured record from OCR text.

        Args:
            text: OCR text of the document.
            file_name: Source file name, included in the prompt.

        Returns:
            The untrusted record decoded from the model's JSON reply.

        Raises:
            EmptyInputError: If ``text`` is empty or whitespace.
            ConfigurationError: If the API key is missing.
            ExtractionFailure: If the request fails or the reply is unusable.
        """
        if not text or not text.strip():
            raise EmptyInputError("No OCR text provided.")
        api_key = self.api_key()

        payload = {
            "model": self.config.model,
            "temperature": self.config.temperature,
            "messages": build_messages(text, file_name),
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        logger.info(
            "Requesting extraction for %s (%d chars, model %s)",
            file_name or "unknown",
            len(text),
            self.config.model,
        )
        try:
            if self._http_client is not None:
                response = self._http_client.post(
                    self.endpoint,
                    headers=headers,
                    json=payload,
                    timeout=self.config.timeout_s,
                )
            else:
                with httpx.Client() as client:
                    response = client.post(
                        self.endpoint,
                        headers=headers,
                        json=payload,
                        timeout=self.config.timeout_s,
                    )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise ExtractionFailure(f"Extraction request failed: {exc}") from exc
        except ValueError as exc:
            raise ExtractionFailure(f"Extraction response is not JSON: {exc}") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ExtractionFailure("Extraction response has no message content") from exc

        return parse_record(content)
