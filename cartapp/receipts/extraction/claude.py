"""Claude API backend for receipt extraction."""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path

from . import RECEIPT_PROMPT, ReceiptExtractor

_SYSTEM = "You are an expert at reading supermarket receipts."


class ClaudeReceiptExtractor(ReceiptExtractor):
    """Read receipt lines using Claude's vision capability."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "claude-sonnet-4-5-20250929",
        fallback_model: str = "",
    ) -> None:
        super().__init__(model=model, fallback_model=fallback_model)
        self._api_key = api_key

    async def _complete(self, image_path: str, model: str) -> str:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        data = Path(image_path).read_bytes()
        media_type = mimetypes.guess_type(image_path)[0] or "image/jpeg"
        content = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": media_type,
                    "data": base64.standard_b64encode(data).decode(),
                },
            },
            {"type": "text", "text": RECEIPT_PROMPT},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=model,
            max_tokens=2048,
            system=_SYSTEM,
            messages=[{"role": "user", "content": content}],
        )

        return response.content[0].text
