"""Result of one AI manager call."""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict

from ..exceptions import AIResponseError


def strip_markdown_fences(text: str) -> str:
    """Strip markdown code fences from LLM output."""
    match = re.search(r"```(?:json|JSON)?\s*\n?(.*?)```", text, flags=re.DOTALL)
    if match:
        return match.group(1).strip()
    return text.strip()


@dataclass
class AIResponse:
    """Model output plus the usage recorded for it."""
    content: str
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0
    duration_ms: int = 0

    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_json(self) -> Dict[str, Any]:
        """
        Parse the content as a JSON object.

        Markdown fences are stripped first; if the model wrapped the object in
        prose, the outermost ``{...}`` is used.

        Raises:
            AIResponseError: If no JSON object can be parsed
        """
        text = strip_markdown_fences(self.content)
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            start, end = text.find("{"), text.rfind("}")
            if start == -1 or end <= start:
                raise AIResponseError("Model response is not valid JSON", content=self.content) from None
            try:
                data = json.loads(text[start:end + 1])
            except json.JSONDecodeError as e:
                raise AIResponseError(f"Model response is not valid JSON: {e}", content=self.content) from None

        if not isinstance(data, dict):
            raise AIResponseError("Model response is not a JSON object", content=self.content)
        return data

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "model": self.model,
            "provider": self.provider,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "duration_ms": self.duration_ms,
        }
