import json
import logging
import re
from functools import lru_cache
from typing import Any, Optional

from google import genai
from google.genai import errors, types

from nutriplan.core.config import get_settings
from nutriplan.core.errors import AICreditsExhausted, AIGatewayError, AIRateLimited

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\n?```\s*$")


def strip_markdown_fences(text: str) -> str:
    """Remove a ```json ... ``` (or bare ```) wrapper the model sometimes adds."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_START.sub("", cleaned, count=1)
        cleaned = _FENCE_END.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_response(text: Optional[str]) -> Any:
    if not text:
        raise AIGatewayError("AI service returned an empty response. Please try again.")
    try:
        return json.loads(strip_markdown_fences(text))
    except json.JSONDecodeError as e:
        logger.error("Could not parse AI response: %s | raw: %s", e, text[:500])
        raise AIGatewayError("Could not process the AI response. Please try again.") from e


class LLMGateway:
    """
    Prompt in, text or JSON out.

    Rate limiting (429) and exhausted credits (402) are surfaced as their own
    error types so routers can tell the user; nothing here retries.
    """

    def __init__(self, client=None, model: Optional[str] = None, temperature: Optional[float] = None):
        settings = get_settings()
        self._client = client
        self.model = model or settings.gemini_model
        self.temperature = settings.ai_temperature if temperature is None else temperature

    @property
    def client(self):
        if self._client is None:
            api_key = get_settings().gemini_api_key
            if not api_key:
                raise AIGatewayError("GEMINI_API_KEY not configured")
            self._client = genai.Client(api_key=api_key)
        return self._client

    def _generate(self, prompt: str, config: types.GenerateContentConfig):
        logger.info("Calling %s (prompt: %s...)", self.model, prompt[:120].replace("\n", " "))
        try:
            return self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except errors.APIError as e:
            logger.error("AI gateway error %s: %s", e.code, e.message)
            if e.code == 429:
                raise AIRateLimited() from e
            if e.code == 402:
                raise AICreditsExhausted() from e
            raise AIGatewayError(f"AI gateway error: {e.code} - {e.message}") from e

    def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        response = self._generate(
            prompt,
            types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=self.temperature,
            ),
        )
        text = response.text or ""
        logger.info("AI response received: %s", text[:200])
        return text

    def generate_json(self, prompt: str, system_instruction: Optional[str] = None) -> Any:
        return parse_json_response(self.generate_text(prompt, system_instruction))

    def generate_structured(
        self,
        prompt: str,
        declaration: types.FunctionDeclaration,
        system_instruction: Optional[str] = None,
    ) -> dict:
        """Force the model to answer through `declaration` and return its arguments."""
        response = self._generate(
            prompt,
            types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=self.temperature,
                tools=[types.Tool(function_declarations=[declaration])],
                tool_config=types.ToolConfig(
                    function_calling_config=types.FunctionCallingConfig(
                        mode="ANY",
                        allowed_function_names=[declaration.name],
                    )
                ),
            ),
        )
        calls = response.function_calls or []
        if not calls:
            raise AIGatewayError(f"AI response did not call {declaration.name}")

        args = dict(calls[0].args or {})
        logger.info("Structured AI response for %s: %s", declaration.name, json.dumps(args)[:200])
        return args


@lru_cache
def get_llm_gateway() -> LLMGateway:
    return LLMGateway()
