"""Client for the generation endpoint

Sends `{contents: [{parts: [{text: prompt}]}]}` and reads the first
candidate's text back. One attempt per call; callers decide what to do
on failure (the daily content lifecycle falls back to static pools).
"""
import json
import logging
import re
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from mindquest.config import GENERATION_ENDPOINT_URL
from mindquest.exceptions import GenerationError, InvalidGenerationResponseError
from mindquest.models.generation import GenerateContentRequest

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_CODE_FENCE = re.compile(r"```(?:json)?")


def extract_candidate_text(data: Any) -> Optional[str]:
    """Return candidates[0].content.parts[0].text, or None if any level is missing"""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


def parse_generated_json(text: str) -> Any:
    """
    Parse model output as JSON after stripping markdown code fences

    Raises:
        InvalidGenerationResponseError: if the cleaned text is not JSON
    """
    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"Unparsable generated text: {text!r}")
        raise InvalidGenerationResponseError(
            message=f"Could not parse the JSON response from the model: {e}",
            raw_text=text,
            operation="parse_generated_json",
            cause=e
        )


class GenerationClient:
    """
    Async client for the generation endpoint

    Args:
        endpoint_url: URL of the generateContent proxy
        http_client: Optional shared httpx.AsyncClient (tests inject one with
            a MockTransport); when omitted a client is created per request
    """

    def __init__(
        self,
        endpoint_url: str = GENERATION_ENDPOINT_URL,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.endpoint_url = endpoint_url
        self._http_client = http_client

    async def _post(self, payload: dict) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.endpoint_url, json=payload)
        async with httpx.AsyncClient() as client:
            return await client.post(self.endpoint_url, json=payload)

    async def generate_text(self, prompt: str) -> str:
        """
        Send a prompt and return the generated text

        Raises:
            GenerationError: network failure, non-2xx status, or no text in the response
        """
        payload = GenerateContentRequest.from_prompt(prompt).model_dump()

        try:
            response = await self._post(payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                message=f"Generation endpoint returned {e.response.status_code}",
                status_code=e.response.status_code,
                operation="generate_text",
                cause=e
            )
        except httpx.HTTPError as e:
            raise GenerationError(
                message=f"Generation request failed: {type(e).__name__}: {e}",
                operation="generate_text",
                cause=e
            )
        except ValueError as e:
            raise GenerationError(
                message="Generation endpoint returned a non-JSON body",
                operation="generate_text",
                cause=e
            )

        text = extract_candidate_text(data)
        if text is None:
            raise GenerationError(message="No text generated from API.", operation="generate_text")

        logger.debug(f"Generated {len(text)} characters")
        return text

    async def generate_model(self, prompt: str, model: Type[ModelT]) -> ModelT:
        """
        Generate JSON and validate it against a pydantic model

        Raises:
            GenerationError: transport or response problems
            InvalidGenerationResponseError: unparsable JSON or missing fields
        """
        text = await self.generate_text(prompt)
        data = parse_generated_json(text)
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise InvalidGenerationResponseError(
                message=f"Generated JSON is missing required fields for {model.__name__}",
                raw_text=text,
                operation="generate_model",
                cause=e
            )

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
