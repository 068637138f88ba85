# path: tests/test_tables.py

from __future__ import annotations

import pytest

from modx_export.report import Report
from modx_export.sqldump import parse_dump
from modx_export.tables import CHUNKS, CONTENT, ContentRow, TableIndex


def test_prefixed_and_unprefixed_tables_merge() -> None:
    tables = {
        "modx_site_content": [{"id": "1", "pagetitle": "A"}],
        "site_content": [{"id": "2", "pagetitle": "B"}],
    }
    index = TableIndex(tables)
    assert [r.id for r in index.content] == [1, 2]
    assert CONTENT in index
    assert "modx_site_content" in index
    assert len(index.rows("modx_site_content")) == 2


def test_custom_prefix() -> None:
    index = TableIndex({"acme_site_htmlsnippets": [{"name": "nav", "snippet": "<nav/>"}]}, prefix="acme_")
    assert index.chunks["nav"].snippet == "<nav/>"
    assert index.table_names() == (CHUNKS,)


def test_unknown_tables_are_kept_under_their_own_name() -> None:
    index = TableIndex({"modx_users": [{"id": "1", "username": "admin"}]})
    assert index.rows("modx_users")[0]["username"] == "admin"
    assert index.content == ()


def test_content_rows_are_typed() -> None:
    row = ContentRow.from_row({"id": "7", "pagetitle": "X", "parent": "3", "template": "2",
                               "published": "0", "deleted": "1", "alias": None})
    assert (row.id, row.parent, row.template) == (7, 3, 2)
    assert row.published is False and row.deleted is True
    assert row.alias == ""


def test_missing_flags_count_as_published() -> None:
    row = ContentRow.from_row({"id": "1", "pagetitle": "X"})
    assert row.published is True
    assert row.deleted is False


def test_id_lookup_and_tv_grouping(sample_dump: str) -> None:
    index = TableIndex(parse_dump(sample_dump))
    assert index.content_by_id[3].alias == "pools"
    assert [tv.value for tv in index.tv_values(1)] == ["assets/images/hero.jpg"]
    assert index.tv_values(99) == ()
    assert index.tv_names[3] == "heroImage"
    assert index.templates_by_id[2].templatename == "Standard"


def test_bad_rows_are_dropped_with_warning() -> None:
    report = Report()
    index = TableIndex({"site_content": [
        {"id": "abc", "pagetitle": "Bad"},
        {"id": None, "pagetitle": "No id"},
        {"id": "1", "pagetitle": "Good"},
    ]}, report=report)
    assert [r.id for r in index.content] == [1]
    assert len(report.warnings) == 2


def test_duplicate_ids_keep_first() -> None:
    report = Report()
    index = TableIndex({"site_content": [
        {"id": "1", "pagetitle": "First"},
        {"id": "1", "pagetitle": "Second"},
    ]}, report=report)
    assert index.content_by_id[1].pagetitle == "First"
    assert len(index.content) == 1
    assert "Duplicate resource id 1" in report.warnings[0]


def test_chunk_names_are_case_sensitive() -> None:
    index = TableIndex({"site_htmlsnippets": [
        {"name": "Footer", "snippet": "upper"},
        {"name": "footer", "snippet": "lower"},
    ]})
    assert index.chunks["Footer"].snippet == "upper"
    assert index.chunks["footer"].snippet == "lower"


def test_index_is_read_only() -> None:
    index = TableIndex({"site_content": [{"id": "1", "pagetitle": "A"}]})
    with pytest.raises(TypeError):
        index.content_by_id[2] = None
    with pytest.raises(TypeError):
        index.rows("site_content")[0]["pagetitle"] = "B"
    with pytest.raises(AttributeError):
        index.content[0].alias = "x"
