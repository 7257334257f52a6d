# tests/conftest.py
# Shared doubles: canned MCP gateways, a stand-in Ollama client and a
# scripted stand-in for the interactive prompt.

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cloud_assistant.errors import InputUnavailable, ToolError  # noqa: E402
from cloud_assistant.gateway import ToolResult, Toolbox  # noqa: E402
from cloud_assistant.orchestrator import Orchestrator  # noqa: E402
from cloud_assistant.resolution import ParameterResolver  # noqa: E402


REGION = "ap-southeast-1"


class FakeGateway:
    """Records every call and answers from a table of canned texts.

    A response may be a string, an exception instance, or a list of either
    (consumed in order, the last one repeats).
    """

    def __init__(
        self,
        name: str,
        responses: Optional[Mapping[str, Any]] = None,
        *,
        tools: Sequence[Tuple[str, str]] = (),
        connect_error: Optional[Exception] = None,
        events: Optional[List[str]] = None,
    ) -> None:
        self.name = name
        self.responses: Dict[str, Any] = {
            op: list(value) if isinstance(value, list) else value for op, value in (responses or {}).items()
        }
        self.tools = list(tools)
        self.connect_error = connect_error
        self.events = events if events is not None else []
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.connected = False

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        self.events.append(f"connect:{self.name}")

    async def disconnect(self) -> None:
        self.connected = False
        self.events.append(f"disconnect:{self.name}")

    async def list_tools(self) -> List[Tuple[str, str]]:
        return list(self.tools)

    async def invoke(self, operation: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        self.calls.append((operation, dict(arguments or {})))
        response = self.responses.get(operation)
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if response is None:
            raise ToolError(f"no canned response for {operation}")
        if isinstance(response, Exception):
            raise response
        if response.startswith("Error"):
            raise ToolError(response)
        return ToolResult(operation=operation, text=response)

    def ops(self) -> List[str]:
        return [op for op, _ in self.calls]

    def calls_to(self, operation: str) -> List[Dict[str, Any]]:
        return [args for op, args in self.calls if op == operation]


class FakeOllama:
    """Stands in for ollama.AsyncClient; replies are consumed in order, the last one repeats."""

    def __init__(self, *replies: Any, delay: float = 0.0) -> None:
        self.replies = list(replies)
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def chat(self, model: str, messages: List[Dict[str, str]], options: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append({"model": model, "messages": list(messages), "options": dict(options)})
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return {"message": {"role": "assistant", "content": reply}}


class ScriptedPrompter:
    """Answers questions from a fixed script; an exhausted script behaves like EOF."""

    def __init__(self, answers: Sequence[str] = (), lines: Sequence[str] = ()) -> None:
        self.answers = list(answers)
        self.lines = list(lines)
        self.questions: List[str] = []
        self.shown: List[str] = []

    async def read_line(self, prompt: str) -> str:
        if not self.lines:
            raise InputUnavailable("script exhausted")
        return self.lines.pop(0)

    async def ask(self, question: str) -> str:
        self.questions.append(question)
        if not self.answers:
            raise InputUnavailable("script exhausted")
        return self.answers.pop(0)

    def show(self, message: str) -> None:
        self.shown.append(message)


# ---------- Canned payloads ----------

def instances_payload(count: int = 2) -> str:
    instances = [
        {
            "id": f"i-{idx:04d}",
            "name": f"web-{idx}",
            "state": "running",
            "type": "t3.micro",
            "zone": f"{REGION}a",
            "publicIp": f"54.0.0.{idx}",
            "privateIp": f"10.0.0.{idx}",
        }
        for idx in range(1, count + 1)
    ]
    return json.dumps({"zone": REGION, "count": len(instances), "instances": instances})


def buckets_payload(*names: str) -> str:
    buckets = [{"name": name, "creationDate": "2024-05-01T10:00:00.000Z"} for name in names]
    return json.dumps({"bucketCount": len(buckets), "buckets": buckets})


def export_payload(filename: str = "ec2-instances.xlsx") -> str:
    return json.dumps({"filePath": f"/srv/output/{filename}", "base64": "UEsDBBQAAAAI"})


@pytest.fixture
def make_toolbox():
    def _make(compute=None, storage=None, files=None) -> Toolbox:
        return Toolbox(
            compute=FakeGateway("ec2", compute),
            storage=FakeGateway("s3", storage),
            files=FakeGateway("file", files),
        )

    return _make


@pytest.fixture
def make_orchestrator():
    def _make(toolbox: Toolbox, prompter: Optional[ScriptedPrompter] = None) -> Orchestrator:
        return Orchestrator(toolbox, ParameterResolver(prompter or ScriptedPrompter()), region=REGION)

    return _make
