"""
Read-only, id-indexed view over the MODX tables recovered from a dump.

MODX installs prefix every table (modx_ by default, but site admins can pick
anything at install time) and some backup tools strip the prefix again, so
both `<prefix>site_content` and `site_content` feed the same logical table.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from .report import Report

log = logging.getLogger("modx-export")

CONTENT = "site_content"
TV_VALUES = "site_tmplvar_contentvalues"
TV_DEFS = "site_tmplvars"
TEMPLATES = "site_templates"
CHUNKS = "site_htmlsnippets"
KNOWN_TABLES = (CONTENT, TV_VALUES, TV_DEFS, TEMPLATES, CHUNKS)


def _int(value, default=0):
    """Integer from a dump value. None and '' give the default; junk raises ValueError."""
    if value is None or value == "":
        return default
    return int(value)


def _id(value):
    if value is None or value == "":
        raise ValueError("missing id")
    return int(value)


def _str(value):
    return "" if value is None else str(value)


@dataclass(frozen=True)
class ContentRow:
    id: int
    pagetitle: str
    longtitle: str = ""
    description: str = ""
    alias: str = ""
    content: str = ""
    parent: int = 0
    template: int = 0
    uri: str = ""
    published: bool = True
    deleted: bool = False

    @classmethod
    def from_row(cls, row):
        # A dump without published/deleted columns is treated as all-live
        return cls(
            id=_id(row.get("id")),
            pagetitle=_str(row.get("pagetitle")),
            longtitle=_str(row.get("longtitle")),
            description=_str(row.get("description")),
            alias=_str(row.get("alias")),
            content=_str(row.get("content")),
            parent=_int(row.get("parent")),
            template=_int(row.get("template")),
            uri=_str(row.get("uri")),
            published=bool(_int(row.get("published"), 1)),
            deleted=bool(_int(row.get("deleted"), 0)),
        )


@dataclass(frozen=True)
class TemplateVarValueRow:
    contentid: int
    tmplvarid: int
    value: Optional[str]

    @classmethod
    def from_row(cls, row):
        return cls(_id(row.get("contentid")), _id(row.get("tmplvarid")), row.get("value"))


@dataclass(frozen=True)
class TemplateVarRow:
    id: int
    name: str

    @classmethod
    def from_row(cls, row):
        return cls(_id(row.get("id")), _str(row.get("name")))


@dataclass(frozen=True)
class ChunkRow:
    name: str
    snippet: str

    @classmethod
    def from_row(cls, row):
        return cls(_str(row.get("name")), _str(row.get("snippet")))


@dataclass(frozen=True)
class TemplateRow:
    id: int
    templatename: str
    content: str = ""

    @classmethod
    def from_row(cls, row):
        return cls(_id(row.get("id")), _str(row.get("templatename")), _str(row.get("content")))


class TableIndex:
    """
    Built once from parse_dump() output, never mutated afterwards.

    Every mapping handed out is a MappingProxyType and every sequence a
    tuple, so slug and tag resolution for different resources can read it
    in any order. Rows whose typed view cannot be built (a non-numeric id,
    say) are dropped with a warning.
    """

    def __init__(self, tables, prefix="modx_", report=None):
        self.report = report or Report()
        self.prefix = prefix

        merged: dict[str, list] = {}
        for name, rows in tables.items():
            merged.setdefault(self.logical_name(name), []).extend(rows)
        self._tables = MappingProxyType({
            name: tuple(MappingProxyType(dict(r)) for r in rows) for name, rows in merged.items()
        })

        by_id = {}
        for row in self._typed(CONTENT, ContentRow):
            if row.id in by_id:
                self.report.warn("Duplicate resource id %d in %s, keeping the first", row.id, CONTENT)
                continue
            by_id[row.id] = row
        self.content = tuple(by_id.values())
        self.content_by_id = MappingProxyType(by_id)

        chunks = {}
        for chunk in self._typed(CHUNKS, ChunkRow):
            chunks.setdefault(chunk.name, chunk)
        self.chunks = MappingProxyType(chunks)

        self.templates_by_id = MappingProxyType({t.id: t for t in self._typed(TEMPLATES, TemplateRow)})
        self.tv_names = MappingProxyType({tv.id: tv.name for tv in self._typed(TV_DEFS, TemplateVarRow)})

        tvs: dict[int, list] = {}
        for tv in self._typed(TV_VALUES, TemplateVarValueRow):
            tvs.setdefault(tv.contentid, []).append(tv)
        self._tv_values = MappingProxyType({cid: tuple(rows) for cid, rows in tvs.items()})

        log.info("Indexed %d resources, %d chunks, %d templates, %d TV values",
                 len(self.content_by_id), len(self.chunks), len(self.templates_by_id),
                 sum(len(v) for v in self._tv_values.values()))

    def logical_name(self, name):
        """'modx_site_content' and 'site_content' both map to 'site_content'."""
        if self.prefix and name.startswith(self.prefix) and name[len(self.prefix):] in KNOWN_TABLES:
            return name[len(self.prefix):]
        return name

    def _typed(self, name, view):
        typed = []
        for n, row in enumerate(self.rows(name), 1):
            try:
                typed.append(view.from_row(row))
            except (TypeError, ValueError) as e:
                self.report.warn("Dropping row %d of %s: %s", n, name, e)
        return tuple(typed)

    def __contains__(self, name):
        return self.logical_name(name) in self._tables

    def table_names(self):
        return tuple(self._tables)

    def rows(self, name):
        return self._tables.get(self.logical_name(name), ())

    def tv_values(self, content_id):
        return self._tv_values.get(content_id, ())
