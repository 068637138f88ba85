# path: tests/test_hierarchy.py

from __future__ import annotations

from modx_export.hierarchy import MAX_DEPTH, resolve_slug
from modx_export.report import Report
from modx_export.tables import TableIndex


def _index(*rows) -> TableIndex:
    """Build an index from (id, alias, parent[, uri]) tuples."""
    content = []
    for r in rows:
        row = {"id": str(r[0]), "pagetitle": f"Page {r[0]}", "alias": r[1], "parent": str(r[2])}
        if len(r) > 3:
            row["uri"] = r[3]
        content.append(row)
    return TableIndex({"modx_site_content": content})


def test_uri_is_returned_verbatim() -> None:
    index = _index((1, "home", 0), (2, "sub", 1, "legacy/path.html"))
    assert resolve_slug(index.content_by_id[2], index) == "legacy/path.html"


def test_root_resource_is_own_alias() -> None:
    index = _index((1, "home", 0))
    assert resolve_slug(index.content_by_id[1], index) == "/home"


def test_nested_chain() -> None:
    index = _index((1, "home", 0), (2, "sub", 1), (3, "leaf", 2))
    assert resolve_slug(index.content_by_id[2], index) == "/home/sub"
    assert resolve_slug(index.content_by_id[3], index) == "/home/sub/leaf"


def test_empty_aliases_are_filtered() -> None:
    index = _index((1, "", 0), (2, "sub", 1), (3, "", 2))
    assert resolve_slug(index.content_by_id[3], index) == "/sub"
    assert resolve_slug(index.content_by_id[1], index) == "/"


def test_missing_ancestor_gives_partial_slug() -> None:
    report = Report()
    index = _index((2, "sub", 1), (3, "leaf", 2))
    assert resolve_slug(index.content_by_id[3], index, report=report) == "/sub/leaf"
    assert "ancestor 1 not found" in report.warnings[0]


def test_cycle_terminates_with_nonempty_slug() -> None:
    report = Report()
    index = _index((1, "a", 2), (2, "b", 1))
    slug = resolve_slug(index.content_by_id[1], index, report=report)
    assert slug == "/b/a"
    assert "loops back" in report.warnings[0]


def test_self_parent_terminates() -> None:
    index = _index((5, "me", 5))
    assert resolve_slug(index.content_by_id[5], index) == "/me"


def test_depth_guard_truncates_deep_chain() -> None:
    report = Report()
    rows = [(1, "p1", 0)] + [(i, f"p{i}", i - 1) for i in range(2, 121)]
    index = _index(*rows)
    slug = resolve_slug(index.content_by_id[120], index, report=report)
    segments = slug.strip("/").split("/")
    assert len(segments) == MAX_DEPTH + 1
    assert segments[-1] == "p120"
    assert "deeper than" in report.warnings[0]


def test_configurable_depth() -> None:
    index = _index((1, "a", 0), (2, "b", 1), (3, "c", 2), (4, "d", 3))
    assert resolve_slug(index.content_by_id[4], index, max_depth=2) == "/b/c/d"
    assert resolve_slug(index.content_by_id[4], index, max_depth=3) == "/a/b/c/d"
