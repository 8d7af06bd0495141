import json
import logging
import re
import uuid
from typing import Any, List, Optional

import httpx
from django.conf import settings
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from apps.common.exceptions import UpstreamFailure

logger = logging.getLogger("evaluation")

# Gemini Flash-Lite pricing (per 1M tokens) used for the usage log line only
INPUT_COST_PER_1M = 0.10
OUTPUT_COST_PER_1M = 0.40

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)


class ResponseParseError(UpstreamFailure):
    default_detail = "The AI service returned an unreadable response."

    def __init__(self, message: str, raw_text: str):
        super().__init__(detail=message)
        self.raw_text = raw_text


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    match = _FENCE_RE.match(cleaned)
    return match.group(1).strip() if match else cleaned


def parse_json_text(text: str) -> Any:
    """Parse model output as JSON, tolerating a markdown code fence around it."""
    try:
        return json.loads(strip_code_fences(text))
    except (json.JSONDecodeError, TypeError) as e:
        raise ResponseParseError(f"Failed to parse AI response as JSON: {e}", raw_text=text) from e


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.api_key = api_key or getattr(settings, "GEMINI_API_KEY", None)
        self.model_name = model_name or getattr(settings, "GEMINI_MODEL_NAME", "gemini-2.5-flash-lite")
        if not self.api_key:
            raise UpstreamFailure("GEMINI_API_KEY is not configured")
        timeout = timeout_seconds or getattr(settings, "GEMINI_TIMEOUT_SECONDS", 120)
        self.client = genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def generate_text(
        self,
        prompt: str,
        parts: Optional[List[types.Part]] = None,
        temperature: float = 0.7,
        max_output_tokens: Optional[int] = None,
        json_mode: bool = False,
        model: Optional[str] = None,
    ) -> str:
        """One model call; returns the first candidate's text.

        A failed or timed-out HTTP call or an empty candidate list raises
        ``UpstreamFailure``.
        """
        run_id = str(uuid.uuid4())
        model_name = model or self.model_name
        contents = [types.Content(role="user", parts=[types.Part.from_text(text=prompt), *(parts or [])])]
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json" if json_mode else None,
        )
        logger.debug(
            "run=%s start generate model=%s file_parts=%d json=%s prompt_preview=%s",
            run_id, model_name, len(parts or []), json_mode, prompt[:200],
        )

        try:
            resp = self.client.models.generate_content(model=model_name, contents=contents, config=config)
        except genai_errors.APIError as e:
            logger.error("run=%s Gemini API error code=%s message=%s", run_id, getattr(e, "code", None), e)
            raise UpstreamFailure(f"Gemini API failed: {e}") from e
        except httpx.TimeoutException as e:
            logger.error("run=%s Gemini request timed out: %s", run_id, e)
            raise UpstreamFailure("Gemini API request timed out") from e
        except httpx.TransportError as e:
            logger.error("run=%s Gemini transport error: %s", run_id, e)
            raise UpstreamFailure(f"Gemini API unreachable: {e}") from e

        self._log_usage(run_id, model_name, resp)

        if not resp or not getattr(resp, "candidates", None):
            logger.error("run=%s no candidates in response", run_id)
            raise UpstreamFailure("No response from Gemini API")
        text = getattr(resp, "text", None) or ""
        if not text.strip():
            logger.error("run=%s empty text in response", run_id)
            raise UpstreamFailure("No response from Gemini API")

        logger.debug("run=%s llm_raw_text=%s", run_id, text[:500])
        return text

    def generate_json(self, prompt: str, parts: Optional[List[types.Part]] = None, **kwargs) -> Any:
        text = self.generate_text(prompt, parts=parts, json_mode=True, **kwargs)
        return parse_json_text(text)

    @staticmethod
    def _log_usage(run_id: str, model_name: str, resp) -> None:
        usage_metadata = getattr(resp, "usage_metadata", None)
        if not usage_metadata:
            logger.warning("run=%s No usage_metadata in response", run_id)
            return
        prompt_tokens = getattr(usage_metadata, "prompt_token_count", 0) or 0
        completion_tokens = getattr(usage_metadata, "candidates_token_count", 0) or 0
        total_tokens = getattr(usage_metadata, "total_token_count", 0) or 0
        input_cost = (prompt_tokens / 1_000_000) * INPUT_COST_PER_1M
        output_cost = (completion_tokens / 1_000_000) * OUTPUT_COST_PER_1M
        logger.info(
            "run=%s USAGE model=%s prompt_tokens=%d completion_tokens=%d total_tokens=%d total_cost=$%.6f",
            run_id, model_name, prompt_tokens, completion_tokens, total_tokens, input_cost + output_cost,
        )


def file_part(data: bytes, mime_type: str) -> types.Part:
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def get_client(**kwargs) -> GeminiClient:
    """Factory used by services; tests replace it with a fake."""
    return GeminiClient(**kwargs)
