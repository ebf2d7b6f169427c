"""Merge raw dependency detections into one entry per target repository."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from migrator_deps.models import DependencySummary, MergedDependency, RawDependencyRecord

logger = logging.getLogger(__name__)


def parse_metadata(record: RawDependencyRecord) -> dict[str, Any] | None:
    """Parse the JSON metadata of a record and tag it with its detection method.

    A JSON object is merged into the entry; any other JSON value (array,
    number, string, null) is kept under "value". The "type" tag always holds
    the record's `dependency_type`, overriding a "type" key of the metadata.

    Returns None when metadata is absent, empty or not valid JSON. Malformed
    metadata never raises.
    """
    if not record.metadata:
        return None
    try:
        parsed = json.loads(record.metadata)
    except (TypeError, ValueError):
        logger.debug(
            "Skipping unparseable metadata for %s (%s)",
            record.dependency_full_name,
            record.dependency_type,
        )
        return None
    if not isinstance(parsed, dict):
        parsed = {"value": parsed}
    return {**parsed, "type": record.dependency_type}


def merge_detection_method(methods: list[str], method: str) -> None:
    """Set semantics: a method is recorded once, in first-seen order."""
    if method not in methods:
        methods.append(method)


def merge_locality(current: bool, incoming: bool) -> bool:
    """Monotonic OR: once local, always local."""
    return current or incoming


def merge_metadata(all_metadata: list[dict[str, Any]], parsed: dict[str, Any] | None) -> None:
    """Append parsed metadata; repeated detections are kept, not de-duplicated."""
    if parsed is not None:
        all_metadata.append(parsed)


def _seed(record: RawDependencyRecord) -> MergedDependency:
    merged = MergedDependency(
        **record.model_dump(include=set(RawDependencyRecord.model_fields)),
        detection_methods=[record.dependency_type],
        all_metadata=[],
    )
    merge_metadata(merged.all_metadata, parse_metadata(record))
    return merged


def aggregate(records: Iterable[RawDependencyRecord]) -> list[MergedDependency]:
    """De-duplicate raw records by `dependency_full_name`.

    Output order follows the first appearance of each target. Field values of
    the first-seen record are kept; detection methods, metadata and locality
    accumulate across duplicates.
    """
    by_target: dict[str, MergedDependency] = {}

    for record in records:
        existing = by_target.get(record.dependency_full_name)
        if existing is None:
            by_target[record.dependency_full_name] = _seed(record)
            continue

        merge_detection_method(existing.detection_methods, record.dependency_type)
        merge_metadata(existing.all_metadata, parse_metadata(record))
        existing.is_local = merge_locality(existing.is_local, record.is_local)

    return list(by_target.values())


def summarize(merged: Iterable[MergedDependency]) -> DependencySummary:
    """Summary over merged entries; `by_type` counts every detection method."""
    summary = DependencySummary()
    for dep in merged:
        summary.total += 1
        if dep.is_local:
            summary.local += 1
        for method in dep.detection_methods:
            summary.by_type[method] = summary.by_type.get(method, 0) + 1
    summary.external = summary.total - summary.local
    return summary


def summarize_raw(records: Iterable[RawDependencyRecord]) -> DependencySummary:
    """Summary over raw records, one count per detection event."""
    summary = DependencySummary()
    for rec in records:
        summary.total += 1
        if rec.is_local:
            summary.local += 1
        else:
            summary.external += 1
        summary.by_type[rec.dependency_type] = summary.by_type.get(rec.dependency_type, 0) + 1
    return summary
