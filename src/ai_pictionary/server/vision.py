from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from ai_pictionary.server.game.catalog import OBJECTS

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"

RATE_LIMITED_TEXT = (
    '{"object":"unknown","comment":"API rate limit exceeded. Please wait a moment and try again."}'
)
API_ERROR_TEXT = '{"object":"unknown","comment":"API error occurred. Please try again."}'


class VisionError(RuntimeError):
    """Raised when the vision service cannot be reached or is not configured."""


def build_instruction(objects: Sequence[str]) -> str:
    # The model must not be told the target; it only picks from the catalog.
    listed = ", ".join(f'"{o}"' for o in objects)
    return (
        "Look at this drawing. The user has drawn a simple, common object. "
        f"The object must be one of the following: {listed}. "
        "Identify which object from this list you see in the drawing. "
        "Respond ONLY with a valid JSON object in this exact format: "
        '{"object": "the exact name from the list above (must match exactly, lowercase)", '
        '"comment": "a brief, humorous comment about the drawing (max 50 words)"}. '
        "The object name MUST be one of the items from the list above. "
        'If the drawing is unclear or doesn\'t match any item in the list, use "unknown" as the object name. '
        "Make the comment witty and concise."
    )


def extract_candidate_text(payload: Any) -> Optional[str]:
    """Return the text parts of the first candidate, or None when absent."""
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts) if texts else None


class GeminiVisionClient:
    """Minimal Gemini generateContent client for judging drawings.

    Usage:
      client = GeminiVisionClient(api_key=os.environ["GEMINI_API_KEY"])
      raw = client.analyze_drawing(image_b64, "Draw a cat")

    The returned text is handed to the verdict parser as-is.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        objects: Sequence[str] = OBJECTS,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.objects = tuple(objects)
        self.timeout = (connect_timeout, read_timeout)
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_request(self, image_b64: str) -> Dict[str, Any]:
        # text and inline_data must be separate parts
        return {
            "contents": [
                {
                    "parts": [
                        {"text": build_instruction(self.objects)},
                        {"inline_data": {"mime_type": "image/png", "data": image_b64}},
                    ]
                }
            ]
        }

    def analyze_drawing(self, image_b64: str, prompt: str) -> str:
        """Ask the model what the drawing shows and return its raw text.

        ``prompt`` is only logged; it is deliberately kept out of the request.
        """
        if not self.api_key:
            raise VisionError("GEMINI_API_KEY is not configured")
        logger.debug("Judging drawing for prompt %r (%d base64 chars)", prompt, len(image_b64))
        try:
            resp = self.session.post(
                self.url,
                params={"key": self.api_key},
                json=self.build_request(image_b64),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise VisionError(f"vision request failed: {e}") from e

        if resp.status_code == 429:
            logger.warning("Vision API rate limited")
            return RATE_LIMITED_TEXT
        if resp.status_code != 200:
            logger.error("Vision API error %s: %s", resp.status_code, resp.text[:200])
            return API_ERROR_TEXT

        try:
            text = extract_candidate_text(resp.json())
        except ValueError:
            text = None
        # No candidate text (e.g. an error payload): let the verdict parser look at the body.
        return text if text is not None else resp.text


__all__ = [
    "GeminiVisionClient",
    "VisionError",
    "build_instruction",
    "extract_candidate_text",
    "RATE_LIMITED_TEXT",
    "API_ERROR_TEXT",
]
