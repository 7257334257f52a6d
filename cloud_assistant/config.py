from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_REGION = "ap-southeast-1"
DEFAULT_MODEL = "llama3.1"


def _server_url(url_var: str, port_var: str, default_port: int) -> str:
    url = os.getenv(url_var)
    if url:
        return url
    port = os.getenv(port_var) or str(default_port)
    return f"http://localhost:{port}/mcp"


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at startup."""

    region: str = DEFAULT_REGION
    model: str = DEFAULT_MODEL
    temperature: float = 0.3
    ec2_url: str = "http://localhost:3001/mcp"
    s3_url: str = "http://localhost:3002/mcp"
    file_url: str = "http://localhost:3003/mcp"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        try:
            temperature = float(os.getenv("LLM_TEMPERATURE", "0.3"))
        except ValueError:
            temperature = 0.3
        return cls(
            region=os.getenv("AWS_REGION") or DEFAULT_REGION,
            model=os.getenv("OLLAMA_MODEL") or DEFAULT_MODEL,
            temperature=temperature,
            ec2_url=_server_url("EC2_MCP_URL", "EC2_MCP_PORT", 3001),
            s3_url=_server_url("S3_MCP_URL", "S3_MCP_PORT", 3002),
            file_url=_server_url("FILE_MCP_URL", "FILE_MCP_PORT", 3003),
        )


__all__ = ["Settings", "DEFAULT_REGION", "DEFAULT_MODEL"]
