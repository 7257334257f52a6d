from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .adapter import LLMAdapter
from .classifier import LLMClassifier
from .config import Settings
from .errors import GatewayConnectionError
from .gateway import ToolGateway, Toolbox
from .host import AssistantHost
from .orchestrator import Orchestrator
from .resolution import ConsolePrompter, ParameterResolver


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Natural-language front end for EC2, S3 and file tools.")
    parser.add_argument("--model", default=settings.model, help="Ollama model id")
    parser.add_argument("--region", default=settings.region, help="AWS region passed to the tools")
    parser.add_argument("--ec2-url", default=settings.ec2_url, help="EC2 MCP server endpoint")
    parser.add_argument("--s3-url", default=settings.s3_url, help="S3 MCP server endpoint")
    parser.add_argument("--file-url", default=settings.file_url, help="File MCP server endpoint")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    toolbox = Toolbox(
        compute=ToolGateway("ec2", args.ec2_url),
        storage=ToolGateway("s3", args.s3_url),
        files=ToolGateway("file", args.file_url),
    )
    prompter = ConsolePrompter()
    adapter = LLMAdapter(model=args.model, temperature=settings.temperature, verbose=args.verbose)
    orchestrator = Orchestrator(toolbox, ParameterResolver(prompter), region=args.region)
    host = AssistantHost(LLMClassifier(adapter), toolbox, orchestrator)

    print("Connecting to MCP servers...")
    try:
        failures = await toolbox.connect()
    except GatewayConnectionError as exc:
        print(f"MCP connection failed: {exc}", file=sys.stderr)
        return 1
    if failures:
        for name, exc in failures.items():
            print(f"Warning: {name} tools unavailable for this session ({exc})", file=sys.stderr)
    else:
        print("Connected to all MCP servers")
    try:
        await host.run(prompter)
    finally:
        await toolbox.disconnect()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        code = asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        print("\nExiting.")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
