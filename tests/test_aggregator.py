from __future__ import annotations

import itertools

from migrator_deps.aggregator import (
    aggregate,
    merge_detection_method,
    merge_locality,
    parse_metadata,
    summarize,
    summarize_raw,
)
from migrator_deps.models import DependencySummary, RawDependencyRecord


def _rec(
    name: str,
    dep_type: str = "submodule",
    *,
    is_local: bool = False,
    metadata: str | None = None,
    id: int | None = None,
    url: str = "",
) -> RawDependencyRecord:
    return RawDependencyRecord(
        id=id,
        repository_id=1,
        dependency_full_name=name,
        dependency_url=url or f"https://github.com/{name}",
        dependency_type=dep_type,
        is_local=is_local,
        metadata=metadata,
    )


def test_same_target_detected_twice_is_merged_and_local() -> None:
    records = [
        _rec("org/dep1", "submodule", is_local=False),
        _rec("org/dep1", "workflow", is_local=True),
    ]

    merged = aggregate(records)

    assert len(merged) == 1
    assert merged[0].detection_methods == ["submodule", "workflow"]
    assert merged[0].is_local is True


def test_invalid_metadata_is_skipped_without_raising() -> None:
    merged = aggregate([_rec("org/dep1", metadata="{invalid")])

    assert len(merged) == 1
    assert merged[0].all_metadata == []
    assert merged[0].detection_methods == ["submodule"]


def test_empty_input() -> None:
    assert aggregate([]) == []
    assert summarize([]) == DependencySummary(total=0, local=0, external=0, by_type={})


def test_first_seen_fields_are_kept() -> None:
    records = [
        _rec("org/dep1", "package", id=1, url="https://first.example/org/dep1"),
        _rec("org/dep1", "submodule", id=2, url="https://second.example/org/dep1"),
    ]

    merged = aggregate(records)[0]

    assert merged.id == 1
    assert merged.dependency_url == "https://first.example/org/dep1"
    assert merged.dependency_type == "package"


def test_output_order_follows_first_appearance() -> None:
    records = [
        _rec("org/c"),
        _rec("org/a"),
        _rec("org/c", "workflow"),
        _rec("org/b"),
        _rec("org/a", "package"),
    ]

    assert [d.dependency_full_name for d in aggregate(records)] == ["org/c", "org/a", "org/b"]


def test_one_entry_per_distinct_target() -> None:
    names = ["a/1", "a/2", "a/1", "a/3", "a/2", "a/1"]
    merged = aggregate(_rec(n, t) for n, t in zip(names, itertools.cycle(["submodule", "workflow", "package"])))

    assert len(merged) == len(set(names))


def test_detection_methods_are_distinct() -> None:
    records = [
        _rec("org/dep", "workflow"),
        _rec("org/dep", "workflow"),
        _rec("org/dep", "dependency_graph"),
        _rec("org/dep", "workflow"),
    ]

    assert aggregate(records)[0].detection_methods == ["workflow", "dependency_graph"]


def test_locality_is_sticky_in_any_order() -> None:
    records = [
        _rec("org/dep", "submodule", is_local=False),
        _rec("org/dep", "workflow", is_local=True),
        _rec("org/dep", "package", is_local=False),
    ]

    for ordering in itertools.permutations(records):
        assert aggregate(ordering)[0].is_local is True


def test_all_external_stays_external() -> None:
    merged = aggregate([_rec("org/dep", "submodule"), _rec("org/dep", "workflow")])
    assert merged[0].is_local is False


def test_metadata_accumulates_including_repeated_methods() -> None:
    records = [
        _rec("org/dep", "submodule", metadata='{"path": "libs/a", "branch": "main"}'),
        _rec("org/dep", "submodule", metadata='{"path": "libs/b"}'),
        _rec("org/dep", "workflow", metadata="not json"),
        _rec("org/dep", "workflow", metadata=None),
        _rec("org/dep", "workflow", metadata=""),
        _rec("org/dep", "workflow", metadata='{"workflow_file": "ci.yml", "ref": "v2"}'),
    ]

    merged = aggregate(records)[0]

    assert len(merged.all_metadata) == 3
    assert merged.all_metadata[0] == {"path": "libs/a", "branch": "main", "type": "submodule"}
    assert merged.all_metadata[1] == {"path": "libs/b", "type": "submodule"}
    assert merged.all_metadata[2] == {"workflow_file": "ci.yml", "ref": "v2", "type": "workflow"}
    # Malformed metadata never hides a detection method.
    assert merged.detection_methods == ["submodule", "workflow"]


def test_non_object_metadata_is_kept_under_value() -> None:
    assert parse_metadata(_rec("org/dep", metadata="[1, 2]")) == {"value": [1, 2], "type": "submodule"}
    assert parse_metadata(_rec("org/dep", metadata="null")) == {"value": None, "type": "submodule"}
    assert parse_metadata(_rec("org/dep", metadata='"text"')) == {"value": "text", "type": "submodule"}


def test_every_parseable_metadata_value_is_counted() -> None:
    merged = aggregate(
        [
            _rec("org/x", "submodule", metadata="[1, 2]"),
            _rec("org/x", "workflow", metadata="42"),
            _rec("org/x", "package", metadata="{broken"),
        ]
    )[0]

    assert len(merged.all_metadata) == 2
    assert merged.all_metadata[1] == {"value": 42, "type": "workflow"}


def test_metadata_is_tagged_with_its_detection_method() -> None:
    parsed = parse_metadata(_rec("org/dep", "package", metadata='{"type": "npm", "manifest": "package.json"}'))
    assert parsed == {"type": "package", "manifest": "package.json"}


def test_aggregate_does_not_mutate_input() -> None:
    first = _rec("org/dep", "submodule", is_local=False)
    aggregate([first, _rec("org/dep", "workflow", is_local=True)])
    assert first.is_local is False


def test_merge_rules() -> None:
    methods = ["submodule"]
    merge_detection_method(methods, "submodule")
    merge_detection_method(methods, "package")
    assert methods == ["submodule", "package"]

    assert merge_locality(False, True) is True
    assert merge_locality(True, False) is True
    assert merge_locality(False, False) is False


def test_summary_counts_every_detection_method() -> None:
    merged = aggregate(
        [
            _rec("org/a", "submodule", is_local=True),
            _rec("org/a", "workflow"),
            _rec("org/b", "workflow"),
            _rec("ext/c", "package"),
        ]
    )

    summary = summarize(merged)

    assert summary.total == 3
    assert summary.local == 1
    assert summary.external == 2
    assert summary.by_type == {"submodule": 1, "workflow": 2, "package": 1}


def test_raw_summary_counts_records() -> None:
    records = [
        _rec("org/a", "submodule", is_local=True),
        _rec("org/a", "workflow", is_local=True),
        _rec("ext/c", "package"),
    ]

    summary = summarize_raw(records)

    assert summary.total == 3
    assert summary.local == 2
    assert summary.external == 1
    assert summary.by_type == {"submodule": 1, "workflow": 1, "package": 1}
