from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------- Tool payloads ----------

class InstanceDescriptor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: Optional[str] = "No Name"
    state: Optional[str] = None
    type: Optional[str] = None
    zone: Optional[str] = None
    public_ip: Optional[str] = Field(default=None, alias="publicIp")
    private_ip: Optional[str] = Field(default=None, alias="privateIp")


class InstanceListing(BaseModel):
    model_config = ConfigDict(frozen=True)

    zone: Optional[str] = None
    count: Optional[int] = None
    instances: List[InstanceDescriptor] = Field(default_factory=list)


class BucketDescriptor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    creation_date: Optional[str] = Field(default=None, alias="creationDate")


class BucketListing(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    bucket_count: Optional[int] = Field(default=None, alias="bucketCount")
    buckets: List[BucketDescriptor] = Field(default_factory=list)

    def names(self) -> List[str]:
        return [bucket.name for bucket in self.buckets]


class ExportArtifact(BaseModel):
    """A generated file: where it was written and its base64-encoded bytes."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file_path: str = Field(alias="filePath")
    content_base64: Optional[str] = Field(default=None, alias="base64")

    @property
    def upload_key(self) -> str:
        return PurePosixPath(self.file_path.replace("\\", "/")).name or "output.xlsx"

    @property
    def has_payload(self) -> bool:
        return bool(self.content_base64)


# ---------- Request-scoped accumulator ----------

@dataclass
class ErrorEntry:
    directive: str
    kind: str
    message: str

    def to_json(self) -> Dict[str, Any]:
        return {"directive": self.directive, "kind": self.kind, "message": self.message}


@dataclass
class ExportResult:
    message: str
    artifact: Optional[ExportArtifact] = None


@dataclass
class ResultBag:
    """Outputs of the directives executed for one user request."""

    compute_listing: Optional[InstanceListing] = None
    storage_listing: Optional[BucketListing] = None
    export: Optional[ExportResult] = None
    upload_message: Optional[str] = None
    creation_message: Optional[str] = None
    errors: List[ErrorEntry] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.compute_listing is None
            and self.storage_listing is None
            and self.export is None
            and self.upload_message is None
            and self.creation_message is None
            and not self.errors
        )

    def has_listing(self) -> bool:
        return self.compute_listing is not None or self.storage_listing is not None

    def add_error(self, directive: str, kind: str, message: str) -> None:
        self.errors.append(ErrorEntry(directive=directive, kind=kind, message=message))

    def errors_for(self, directive: str) -> List[ErrorEntry]:
        return [entry for entry in self.errors if entry.directive == directive]

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.compute_listing is not None:
            payload["compute_listing"] = self.compute_listing.model_dump(by_alias=True)
        if self.storage_listing is not None:
            payload["storage_listing"] = self.storage_listing.model_dump(by_alias=True)
        if self.export is not None:
            payload["export"] = {
                "message": self.export.message,
                "file_path": self.export.artifact.file_path if self.export.artifact else None,
            }
        if self.upload_message is not None:
            payload["upload_message"] = self.upload_message
        if self.creation_message is not None:
            payload["creation_message"] = self.creation_message
        if self.errors:
            payload["errors"] = [entry.to_json() for entry in self.errors]
        return payload


__all__ = [
    "InstanceDescriptor",
    "InstanceListing",
    "BucketDescriptor",
    "BucketListing",
    "ExportArtifact",
    "ExportResult",
    "ErrorEntry",
    "ResultBag",
]
