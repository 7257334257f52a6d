from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, List, Optional, Tuple

from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from .config import DEFAULT_REGION
from .directives import Classification, Directive
from .errors import AssistantError, MissingPrerequisite, ToolError
from .gateway import Toolbox
from .resolution import ParameterResolver
from .schemas import BucketListing, ExportArtifact, ExportResult, InstanceListing, ResultBag


# Remote operation names exposed by the tool servers.
LIST_INSTANCES_OP = "listEC2"
LIST_BUCKETS_OP = "listS3"
CREATE_BUCKET_OP = "createBucket"
PUT_OBJECT_OP = "PutDataInS3"
WRITE_EXCEL_OP = "writeExcel"

FETCH_ORDER = (Directive.LIST_INSTANCES, Directive.LIST_BUCKETS)


class Orchestrator:
    """Executes one request's directive set in dependency order.

    FETCH directives run first, then bucket creation, then the export
    (DERIVE) step and finally the upload (PUBLISH) step. Each directive is
    attempted at most once; its failure is recorded in the result bag and
    never aborts the request.
    """

    def __init__(
        self,
        toolbox: Toolbox,
        resolver: ParameterResolver,
        *,
        region: str = DEFAULT_REGION,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.toolbox = toolbox
        self.resolver = resolver
        self.region = region
        self.logger = logger or logging.getLogger(__name__)

    async def execute(self, classification: Classification, user_prompt: str) -> ResultBag:
        bag = ResultBag()
        if classification.is_direct_answer:
            return bag

        for directive in FETCH_ORDER:
            if classification.has(directive):
                await self._guarded(bag, directive, self._fetch(bag, directive))

        if classification.has(Directive.CREATE_BUCKET):
            await self._guarded(
                bag,
                Directive.CREATE_BUCKET,
                self._create_bucket(bag, user_prompt, classification.param("bucket")),
            )

        if classification.has(Directive.EXPORT):
            if bag.has_listing():
                await self._guarded(bag, Directive.EXPORT, self._export(bag))
            else:
                self.logger.info("Skipping %s: no listing was fetched in this request", Directive.EXPORT.value)

        if classification.has(Directive.UPLOAD):
            await self._guarded(
                bag,
                Directive.UPLOAD,
                self._upload(
                    bag,
                    user_prompt,
                    classification.param("bucket"),
                    export_failed=bool(bag.errors_for(Directive.EXPORT.value)),
                ),
            )

        return bag

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def _fetch(self, bag: ResultBag, directive: Directive) -> None:
        if directive is Directive.LIST_INSTANCES:
            self.logger.info("Listing EC2 instances in %s", self.region)
            result = await self.toolbox.compute.invoke(LIST_INSTANCES_OP, {"zone": self.region})
            bag.compute_listing = _parse_payload(InstanceListing, result.json(), LIST_INSTANCES_OP)
        else:
            self.logger.info("Listing S3 buckets")
            bag.storage_listing = await self._list_buckets()

    async def _create_bucket(self, bag: ResultBag, user_prompt: str, suggestion: Optional[str]) -> None:
        bucket_name = await self.resolver.resolve_new_name(user_prompt, suggestion)
        self.logger.info("Creating bucket %s in %s", bucket_name, self.region)
        result = await self.toolbox.storage.invoke(
            CREATE_BUCKET_OP, {"bucketName": bucket_name, "region": self.region}
        )
        bag.creation_message = result.text.strip()

    async def _export(self, bag: ResultBag) -> None:
        data, filename, sheet_name = _export_source(bag)
        self.logger.info("Writing %s to a spreadsheet", filename)
        result = await self.toolbox.files.invoke(
            WRITE_EXCEL_OP, {"filename": filename, "data": data, "sheetName": sheet_name}
        )
        bag.export = _export_result(result.text)

    async def _upload(
        self,
        bag: ResultBag,
        user_prompt: str,
        suggestion: Optional[str],
        *,
        export_failed: bool,
    ) -> None:
        if export_failed:
            raise MissingPrerequisite("Spreadsheet export failed, so there is nothing to upload.")
        if bag.export is None:
            if not bag.has_listing():
                raise MissingPrerequisite(
                    "No spreadsheet is available to upload. Ask for EC2 or S3 data to be exported first."
                )
            self.logger.info("No spreadsheet yet; exporting fetched data before upload")
            await self._export(bag)
        artifact = bag.export.artifact if bag.export else None
        if artifact is None or not artifact.has_payload:
            raise MissingPrerequisite("The spreadsheet server did not return file contents to upload.")

        bucket_name = await self.resolver.resolve_existing_bucket(
            user_prompt, suggestion, self._live_bucket_names
        )
        key = artifact.upload_key
        self.logger.info("Uploading %s to bucket %s", key, bucket_name)
        result = await self.toolbox.storage.invoke(
            PUT_OBJECT_OP,
            {"bucketName": bucket_name, "key": key, "contentBase64": artifact.content_base64},
        )
        bag.upload_message = result.text.strip()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _list_buckets(self) -> BucketListing:
        result = await self.toolbox.storage.invoke(LIST_BUCKETS_OP, {})
        return _parse_payload(BucketListing, result.json(), LIST_BUCKETS_OP)

    async def _live_bucket_names(self) -> List[str]:
        return (await self._list_buckets()).names()

    async def _guarded(self, bag: ResultBag, directive: Directive, step: Awaitable[None]) -> None:
        try:
            await step
        except AssistantError as exc:
            kind = type(exc).__name__
            self.logger.warning("%s failed (%s): %s", directive.value, kind, exc)
            bag.add_error(directive.value, kind, str(exc))


def _parse_payload(model: type[BaseModel], data: Any, operation: str) -> Any:
    try:
        return model.model_validate(data)
    except PayloadError as exc:
        raise ToolError(f"{operation} returned an unexpected payload: {exc.error_count()} invalid field(s)") from exc


def _export_source(bag: ResultBag) -> Tuple[dict, str, str]:
    if bag.compute_listing is not None:
        return bag.compute_listing.model_dump(by_alias=True, mode="json"), "ec2-instances", "EC2 Instances"
    if bag.storage_listing is not None:
        return bag.storage_listing.model_dump(by_alias=True, mode="json"), "s3-buckets", "S3 Buckets"
    raise MissingPrerequisite("No fetched data to export.")


def _export_result(text: str) -> ExportResult:
    """The file server answers with {filePath, base64} or, in older builds, a plain message."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return ExportResult(message=text.strip())
    if not isinstance(payload, dict):
        return ExportResult(message=text.strip())
    try:
        artifact = ExportArtifact.model_validate(payload)
    except PayloadError as exc:
        raise ToolError(f"{WRITE_EXCEL_OP} returned an unexpected payload: {exc.error_count()} invalid field(s)") from exc
    return ExportResult(message=f"Excel file created: {artifact.file_path}", artifact=artifact)


__all__ = [
    "Orchestrator",
    "FETCH_ORDER",
    "LIST_INSTANCES_OP",
    "LIST_BUCKETS_OP",
    "CREATE_BUCKET_OP",
    "PUT_OBJECT_OP",
    "WRITE_EXCEL_OP",
]
