"""Natural-language front end routing requests to EC2, S3 and file tool servers."""

from .directives import Classification, Directive, parse_directives
from .formatter import format_response
from .gateway import ToolGateway, Toolbox
from .host import AssistantHost
from .orchestrator import Orchestrator

__all__ = [
    "AssistantHost",
    "Classification",
    "Directive",
    "Orchestrator",
    "ToolGateway",
    "Toolbox",
    "format_response",
    "parse_directives",
]
