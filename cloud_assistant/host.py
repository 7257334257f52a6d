from __future__ import annotations

import json
import logging
from typing import Callable

from .adapter import LLMError
from .classifier import Classifier
from .directives import parse_directives
from .errors import InputUnavailable
from .formatter import format_response
from .gateway import Toolbox
from .orchestrator import Orchestrator
from .resolution import Prompter


logger = logging.getLogger(__name__)

BANNER = 'Cloud assistant ready. Type your questions or "quit" to exit.'
EXAMPLES = 'Try: "Show me EC2 instances", "List S3 buckets", "Show EC2 and save to Excel"'


class AssistantHost:
    """Runs the classify -> orchestrate -> format pipeline for each line of input."""

    def __init__(
        self,
        classifier: Classifier,
        toolbox: Toolbox,
        orchestrator: Orchestrator,
        *,
        output: Callable[[str], None] = print,
    ) -> None:
        self.classifier = classifier
        self.toolbox = toolbox
        self.orchestrator = orchestrator
        self.output = output

    async def process_request(self, user_prompt: str) -> str:
        capabilities = await self.toolbox.capabilities()
        try:
            llm_text = await self.classifier.classify(user_prompt, capabilities)
        except LLMError as exc:
            logger.warning("Classification failed: %s", exc)
            llm_text = f"LLM error: {exc}"

        classification = parse_directives(llm_text)
        if classification.is_direct_answer:
            return llm_text

        bag = await self.orchestrator.execute(classification, user_prompt)
        logger.debug(
            "Request processed:\n%s",
            json.dumps(
                {
                    "user_prompt": user_prompt,
                    "capabilities": capabilities,
                    "llm_text": llm_text,
                    "directives": sorted(d.value for d in classification.directives),
                    "results": bag.to_json(),
                },
                indent=2,
                default=str,
            ),
        )
        return format_response(bag, llm_text)

    async def run(self, prompter: Prompter) -> None:
        self.output(f"\n{BANNER}\n")
        self.output(f"{EXAMPLES}\n")
        while True:
            try:
                line = await prompter.read_line("You: ")
            except InputUnavailable:
                self.output("\nGoodbye!")
                break
            text = line.strip()
            if text.lower() == "quit":
                self.output("Goodbye!")
                break
            if not text:
                continue

            self.output("\nProcessing...")
            try:
                response = await self.process_request(text)
            except Exception as exc:  # noqa: BLE001 - one bad request must not end the session
                logger.exception("Request failed")
                response = f"Error: {exc}"
            self.output(f"\nAssistant: {response}\n")


__all__ = ["AssistantHost", "BANNER"]
