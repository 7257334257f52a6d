from __future__ import annotations

import asyncio
import logging
import re
import threading
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

from .directives import DIRECTIVE_TOKENS
from .errors import InputUnavailable, ValidationError


logger = logging.getLogger(__name__)


BUCKET_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$")

STOPWORDS = frozenset(
    {
        "create", "make", "new", "bucket", "buckets", "s3", "a", "an", "the", "please",
        "named", "called", "name", "with", "and", "for", "to", "into", "in", "of", "on",
        "me", "my", "it", "its", "list", "show", "all", "get", "fetch", "ec2", "instance",
        "instances", "excel", "sheet", "spreadsheet", "file", "save", "export", "upload",
        "put", "write", "object", "data", "store", "also", "then", "that", "this", "can",
        "you", "want", "need", "would", "like", "there", "from", "them", "aws",
    }
)

CUE_WORDS = frozenset({"named", "called", "name", "bucket"})

_DIRECTIVE_ECHOES = frozenset(token.lower() for token in DIRECTIVE_TOKENS)
_STRIP_CHARS = ".,;:!?\"'()[]{}<>`"


def is_valid_bucket_name(name: str | None) -> bool:
    return bool(name) and BUCKET_NAME_RE.fullmatch(name) is not None


def validate_bucket_name(name: str) -> str:
    """Return ``name`` unchanged or raise ValidationError explaining the rule it breaks."""
    if not name:
        raise ValidationError("Bucket name is empty.")
    if len(name) < 3 or len(name) > 63:
        raise ValidationError(f"'{name}' must be between 3 and 63 characters long.")
    if name != name.lower():
        raise ValidationError(f"'{name}' must not contain uppercase letters.")
    if name.startswith("-") or name.endswith("-"):
        raise ValidationError(f"'{name}' must not start or end with a hyphen.")
    if not BUCKET_NAME_RE.fullmatch(name):
        raise ValidationError(f"'{name}' may only contain lowercase letters, digits and hyphens.")
    return name


def _words(text: str) -> List[str]:
    return [word.strip(_STRIP_CHARS) for word in (text or "").split()]


def _usable(word: str) -> bool:
    return is_valid_bucket_name(word) and word not in STOPWORDS and word not in _DIRECTIVE_ECHOES


def _dedupe(items: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def candidate_tiers(user_prompt: str) -> List[List[str]]:
    """Rank name candidates found in the user's own words.

    Tier 0: words right after a cue word ("named", "called", ...).
    Tier 1: other words carrying a digit or hyphen.
    Tier 2: any remaining word that satisfies the naming rule.
    """
    words = _words(user_prompt)
    cued: List[str] = []
    marked: List[str] = []
    plain: List[str] = []
    for idx, word in enumerate(words):
        if not _usable(word):
            continue
        # skip over other stop-words between the cue and the name: "bucket named logs"
        back = idx - 1
        while back >= 0 and words[back].lower() in STOPWORDS and words[back].lower() not in CUE_WORDS:
            back -= 1
        if back >= 0 and words[back].lower() in CUE_WORDS:
            cued.append(word)
        elif any(ch.isdigit() for ch in word) or "-" in word:
            marked.append(word)
        else:
            plain.append(word)
    return [_dedupe(cued), _dedupe(marked), _dedupe(plain)]


def extract_candidates(user_prompt: str) -> List[str]:
    """All usable candidates from the user prompt, best first."""
    ordered: List[str] = []
    for tier in candidate_tiers(user_prompt):
        ordered.extend(tier)
    return _dedupe(ordered)


def pick_user_candidate(user_prompt: str) -> Optional[str]:
    """The single name the user clearly supplied, or None when absent or ambiguous."""
    cued, marked, _ = candidate_tiers(user_prompt)
    for tier in (cued, marked):
        if tier:
            return tier[0] if len(tier) == 1 else None
    return None


class Prompter(Protocol):
    async def read_line(self, prompt: str) -> str: ...

    async def ask(self, question: str) -> str: ...

    def show(self, message: str) -> None: ...


def _deliver(future: asyncio.Future, line: Optional[str], error: Optional[BaseException]) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(line)


class ConsolePrompter:
    """Reads answers from stdin without blocking the event loop thread.

    Each read runs on its own daemon thread, so an ``input()`` still pending
    after Ctrl-C never keeps the process alive.
    """

    def __init__(self, prefix: str = "Assistant: ") -> None:
        self.prefix = prefix

    async def read_line(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def reader() -> None:
            line: Optional[str] = None
            error: Optional[BaseException] = None
            try:
                line = input(prompt)
            except (EOFError, OSError) as exc:
                error = exc
            try:
                loop.call_soon_threadsafe(_deliver, future, line, error)
            except RuntimeError:
                logger.debug("Event loop closed before console input arrived")

        threading.Thread(target=reader, name="console-input", daemon=True).start()
        try:
            return await future
        except (EOFError, OSError) as exc:
            raise InputUnavailable("Input stream closed.") from exc

    async def ask(self, question: str) -> str:
        return await self.read_line(f"{self.prefix}{question}")

    def show(self, message: str) -> None:
        print(message)


class ParameterResolver:
    """Resolves bucket names, falling back to asking the user."""

    def __init__(self, prompter: Prompter) -> None:
        self.prompter = prompter

    async def resolve_new_name(self, user_prompt: str, suggestion: Optional[str] = None) -> str:
        candidate = pick_user_candidate(user_prompt)
        if candidate:
            logger.info("Using bucket name from the request: %s", candidate)
            return candidate
        if suggestion:
            logger.info("Ignoring suggested bucket name %r; asking the user instead", suggestion)
        example = suggestion if is_valid_bucket_name(suggestion) else "my-bucket-1234"
        question = f"Please provide a unique S3 bucket name (e.g., {example}): "
        while True:
            answer = (await self.prompter.ask(question)).strip()
            if not answer:
                raise ValidationError("Bucket name is required to create a bucket.")
            try:
                return validate_bucket_name(answer)
            except ValidationError as exc:
                self.prompter.show(str(exc))

    async def resolve_existing_bucket(
        self,
        user_prompt: str,
        suggestion: Optional[str],
        fetch_live: Callable[[], Awaitable[List[str]]],
    ) -> str:
        live = await fetch_live()
        for candidate in extract_candidates(user_prompt):
            if candidate in live:
                return candidate
        if suggestion and suggestion in live and pick_user_candidate(user_prompt) is None:
            return suggestion

        while True:
            if live:
                self.prompter.show(f"Available buckets: {', '.join(live)}")
                question = "Enter a valid bucket name from the list above: "
            else:
                self.prompter.show("No buckets found.")
                question = "No buckets found. Please create one first or enter a valid existing bucket name: "
            answer = (await self.prompter.ask(question)).strip()
            # the set may have changed while the user was typing
            live = await fetch_live()
            if answer and answer in live:
                return answer


__all__ = [
    "BUCKET_NAME_RE",
    "ConsolePrompter",
    "ParameterResolver",
    "Prompter",
    "candidate_tiers",
    "extract_candidates",
    "is_valid_bucket_name",
    "pick_user_candidate",
    "validate_bucket_name",
]
