from __future__ import annotations

from typing import List

from .schemas import BucketListing, InstanceListing, ResultBag


def format_response(bag: ResultBag, fallback: str) -> str:
    """Render the result bag; an empty bag yields ``fallback`` untouched."""
    if bag.is_empty():
        return fallback

    sections: List[str] = []
    if bag.compute_listing is not None:
        sections.append(_format_instances(bag.compute_listing))
    if bag.storage_listing is not None:
        sections.append(_format_buckets(bag.storage_listing))
    if bag.export is not None:
        sections.append(f"[Export] {bag.export.message}")
    if bag.upload_message is not None:
        sections.append(f"[Upload] {bag.upload_message}")
    if bag.creation_message is not None:
        sections.append(f"[Created] {bag.creation_message}")
    for entry in bag.errors:
        sections.append(f"Error [{entry.directive}]: {entry.message}")
    return "\n\n".join(sections)


def _format_instances(listing: InstanceListing) -> str:
    zone = listing.zone or "unknown region"
    lines = [f"EC2 instances in {zone} ({len(listing.instances)}):"]
    for instance in listing.instances:
        lines.append(
            f"- {instance.name or 'No Name'} ({instance.id}): "
            f"{instance.state or 'unknown'} - {instance.type or 'unknown'}"
        )
    if not listing.instances:
        lines.append("(none)")
    return "\n".join(lines)


def _format_buckets(listing: BucketListing) -> str:
    lines = [f"S3 buckets ({len(listing.buckets)}):"]
    for bucket in listing.buckets:
        created = bucket.creation_date or "unknown"
        lines.append(f"- {bucket.name} (created: {created})")
    if not listing.buckets:
        lines.append("(none)")
    return "\n".join(lines)


__all__ = ["format_response"]
