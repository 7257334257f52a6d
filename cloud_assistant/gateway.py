from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client

from .errors import AssistantError, GatewayConnectionError, NotConnected, ToolError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """Text returned by one successful tool invocation."""

    operation: str
    text: str

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as exc:
            raise ToolError(f"{self.operation} returned malformed JSON: {exc}") from exc


class ToolGateway:
    """One MCP tool server reached over streamable HTTP.

    The session is opened by ``connect()`` and kept for the whole process;
    ``invoke()`` issues exactly one ``tools/call`` per call and never retries.
    """

    def __init__(
        self,
        name: str,
        url: str,
        *,
        timeout: float = 30.0,
        transport_factory: Optional[Callable[..., Any]] = None,
        session_factory: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.name = name
        self.url = url
        self.timeout = timeout
        self._transport_factory = transport_factory or streamablehttp_client
        self._session_factory = session_factory or ClientSession
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        if self._session is not None:
            return
        stack = AsyncExitStack()
        try:
            read_stream, write_stream, _ = await stack.enter_async_context(
                self._transport_factory(self.url, timeout=timedelta(seconds=self.timeout))
            )
            session = await stack.enter_async_context(
                self._session_factory(
                    read_stream, write_stream, read_timeout_seconds=timedelta(seconds=self.timeout)
                )
            )
            await session.initialize()
        except Exception as exc:  # noqa: BLE001 - any handshake failure is fatal for this server
            await self._close_stack(stack)
            raise GatewayConnectionError(f"Could not connect to {self.name} tools at {self.url}: {exc}") from exc
        self._stack = stack
        self._session = session
        logger.info("Connected to %s tools at %s", self.name, self.url)

    async def disconnect(self) -> None:
        stack, self._stack, self._session = self._stack, None, None
        if stack is not None:
            await self._close_stack(stack)
            logger.info("Disconnected from %s tools", self.name)

    async def list_tools(self) -> List[Tuple[str, str]]:
        session = self._require_session()
        try:
            listing = await session.list_tools()
        except Exception as exc:  # noqa: BLE001 - surface transport failures as tool errors
            raise ToolError(f"{self.name}: listing tools failed: {exc}") from exc
        return [(tool.name, tool.description or "") for tool in listing.tools]

    async def invoke(self, operation: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        session = self._require_session()
        args: Dict[str, Any] = dict(arguments or {})
        logger.debug("Invoking %s.%s with keys %s", self.name, operation, sorted(args))
        try:
            result = await session.call_tool(operation, args)
        except Exception as exc:  # noqa: BLE001 - surface transport failures as tool errors
            raise ToolError(f"{operation} failed: {exc}") from exc
        return _unwrap(operation, result)

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise NotConnected(f"{self.name} gateway is not connected")
        return self._session

    async def _close_stack(self, stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as exc:  # noqa: BLE001 - shutdown must reach every gateway
            logger.warning("Closing %s transport raised: %s", self.name, exc)


def _unwrap(operation: str, result: Any) -> ToolResult:
    texts = [
        str(getattr(block, "text", ""))
        for block in (getattr(result, "content", None) or [])
        if getattr(block, "type", None) == "text"
    ]
    if not texts:
        raise ToolError(f"{operation} returned no text content")
    text = texts[0]
    if getattr(result, "isError", False) or text.lstrip().startswith("Error"):
        raise ToolError(text.strip() or f"{operation} reported an error")
    return ToolResult(operation=operation, text=text)


@dataclass
class Toolbox:
    """The three process-scoped gateways the host talks to."""

    compute: ToolGateway
    storage: ToolGateway
    files: ToolGateway

    def gateways(self) -> Tuple[ToolGateway, ...]:
        return (self.compute, self.storage, self.files)

    async def connect(self) -> Dict[str, GatewayConnectionError]:
        """Open every gateway; a server that cannot be reached stays down for the run."""
        failures: Dict[str, GatewayConnectionError] = {}
        for gateway in self.gateways():
            try:
                await gateway.connect()
            except GatewayConnectionError as exc:
                logger.error("%s", exc)
                failures[gateway.name] = exc
        if len(failures) == len(self.gateways()):
            raise GatewayConnectionError("No MCP server could be reached")
        return failures

    async def disconnect(self) -> None:
        # Transports nest their task groups, so close in reverse order.
        for gateway in reversed(self.gateways()):
            await gateway.disconnect()

    async def capabilities(self) -> Dict[str, List[str]]:
        catalog: Dict[str, List[str]] = {}
        for gateway in self.gateways():
            try:
                tools = await gateway.list_tools()
            except AssistantError as exc:
                logger.warning("Capability discovery for %s failed: %s", gateway.name, exc)
                tools = []
            catalog[gateway.name] = [f"{name}: {description}" for name, description in tools]
        return catalog


__all__ = ["ToolGateway", "ToolResult", "Toolbox"]
