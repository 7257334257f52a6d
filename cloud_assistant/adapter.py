from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import ollama
from ollama import ResponseError


logger = logging.getLogger(__name__)

# Ollama reports a reply it could not parse as a tool call with the text inlined: raw='...'
_RAW_REPLY_RE = re.compile(r"raw='([^']*)'")

_NUDGE = "Reply with the directive tokens or a short answer; do not leave the reply empty."


class LLMError(RuntimeError):
    """Raised when the language model cannot produce a usable reply."""


class LLMAdapter:
    """Asks a local Ollama model for one short reply without blocking the event loop."""

    def __init__(
        self,
        model: str,
        *,
        temperature: float = 0.3,
        max_tokens: Optional[int] = 300,
        max_attempts: int = 2,
        host: Optional[str] = None,
        client: Optional[Any] = None,
        verbose: bool = False,
    ) -> None:
        self.model = model
        self.options: Dict[str, Any] = {"temperature": temperature}
        if max_tokens is not None:
            self.options["num_predict"] = max_tokens
        self.max_attempts = max(1, max_attempts)
        self.verbose = verbose
        self._client = client if client is not None else ollama.AsyncClient(host=host)

    async def reply(self, system_prompt: str, user_text: str) -> str:
        """Return the model's trimmed reply, nudging it once more if it comes back empty."""
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_text},
        ]
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await self._client.chat(model=self.model, messages=messages, options=self.options)
                text = response["message"]["content"] or ""
            except ResponseError as exc:
                match = _RAW_REPLY_RE.search(str(exc))
                text = match.group(1) if match else ""
                if not text:
                    logger.debug("Attempt %s rejected by Ollama: %s", attempt, exc)
            except ConnectionError as exc:
                raise LLMError(f"Could not reach Ollama: {exc}") from exc

            if self.verbose:
                logger.debug("Attempt %s reply: %r", attempt, text)
            text = text.strip()
            if text:
                return text
            messages.append({"role": "system", "content": _NUDGE})

        raise LLMError(f"{self.model} returned an empty reply after {self.max_attempts} attempts")


__all__ = ["LLMAdapter", "LLMError"]
