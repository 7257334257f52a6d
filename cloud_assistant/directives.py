from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet


class DirectiveKind(str, Enum):
    FETCH = "fetch"
    CREATE = "create"
    DERIVE = "derive"
    PUBLISH = "publish"


class Directive(str, Enum):
    """Control tokens the classifier may emit."""

    LIST_INSTANCES = "USE_EC2"
    LIST_BUCKETS = "USE_S3"
    CREATE_BUCKET = "CREATE_S3"
    EXPORT = "USE_EXCEL"
    UPLOAD = "PutObjectInS3"

    @property
    def kind(self) -> DirectiveKind:
        return _KINDS[self]


_KINDS = {
    Directive.LIST_INSTANCES: DirectiveKind.FETCH,
    Directive.LIST_BUCKETS: DirectiveKind.FETCH,
    Directive.CREATE_BUCKET: DirectiveKind.CREATE,
    Directive.EXPORT: DirectiveKind.DERIVE,
    Directive.UPLOAD: DirectiveKind.PUBLISH,
}

_BY_TOKEN = {directive.value: directive for directive in Directive}

DIRECTIVE_TOKENS = frozenset(_BY_TOKEN)

# Identifier-like words; directive tokens never contain hyphens.
_TOKEN_RE = re.compile(r"[A-Za-z0-9_]+")
# key=value or key: value, value may carry hyphens and dots.
_PARAM_RE = re.compile(r"\b([A-Za-z_][A-Za-z0-9_]*)\s*[=:]\s*[\"']?([A-Za-z0-9][A-Za-z0-9._-]*)")


@dataclass(frozen=True)
class Classification:
    """Structured view of one classifier reply."""

    directives: FrozenSet[Directive]
    params: Dict[str, str] = field(default_factory=dict)
    raw_text: str = ""

    @property
    def is_direct_answer(self) -> bool:
        return not self.directives

    def has(self, directive: Directive) -> bool:
        return directive in self.directives

    def param(self, name: str) -> str | None:
        return self.params.get(name.lower())


def parse_directives(text: str) -> Classification:
    """Split a classifier reply into recognised directives and explicit parameters.

    Recognition is exact token membership. Parameters are only taken from
    ``key=value`` style pairs so that free prose never leaks into them.
    """
    raw = text or ""
    found = {_BY_TOKEN[token] for token in _TOKEN_RE.findall(raw) if token in _BY_TOKEN}
    params: Dict[str, str] = {}
    if found:
        for key, value in _PARAM_RE.findall(raw):
            params.setdefault(key.lower(), value)
    return Classification(directives=frozenset(found), params=params, raw_text=raw)


__all__ = [
    "Directive",
    "DirectiveKind",
    "Classification",
    "DIRECTIVE_TOKENS",
    "parse_directives",
]
