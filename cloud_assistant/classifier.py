from __future__ import annotations

import logging
from typing import List, Mapping, Protocol, Sequence

from .adapter import LLMAdapter
from .prompts import CLASSIFY_PROMPT, NO_TOOLS


logger = logging.getLogger(__name__)


class Classifier(Protocol):
    """Anything that turns a user prompt into directive text or a direct answer."""

    async def classify(self, prompt: str, available_tools: Mapping[str, Sequence[str]]) -> str: ...


class LLMClassifier:
    def __init__(self, adapter: LLMAdapter) -> None:
        self.adapter = adapter

    async def classify(self, prompt: str, available_tools: Mapping[str, Sequence[str]]) -> str:
        system_prompt = build_system_prompt(available_tools)
        reply = await self.adapter.reply(system_prompt, f'User request: "{prompt}"')
        logger.debug("Classifier reply: %s", reply)
        return reply


def build_system_prompt(available_tools: Mapping[str, Sequence[str]]) -> str:
    def joined(name: str) -> str:
        tools: List[str] = list(available_tools.get(name) or [])
        return ", ".join(tools) if tools else NO_TOOLS

    return CLASSIFY_PROMPT.format(
        ec2_tools=joined("ec2"),
        s3_tools=joined("s3"),
        file_tools=joined("file"),
    )


__all__ = ["Classifier", "LLMClassifier", "build_system_prompt"]
