"""Gemini API backend for receipt extraction."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from . import RECEIPT_PROMPT, ReceiptExtractor


class GeminiReceiptExtractor(ReceiptExtractor):
    """Read receipt lines using Google Gemini's vision capability."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-2.0-flash",
        fallback_model: str = "",
    ) -> None:
        super().__init__(model=model, fallback_model=fallback_model)
        self._api_key = api_key

    async def _complete(self, image_path: str, model: str) -> str:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        client = genai.GenerativeModel(
            model,
            generation_config={"response_mime_type": "application/json"},
        )

        data = Path(image_path).read_bytes()
        media_type = mimetypes.guess_type(image_path)[0] or "image/jpeg"
        parts = [{"mime_type": media_type, "data": data}, RECEIPT_PROMPT]

        response = await client.generate_content_async(parts)
        return response.text
