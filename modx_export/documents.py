"""
Turn MODX resources into static-site documents.

convert_dump() is the whole core in one call: dump text in, Documents out.
Each Document is computed from the read-only TableIndex alone, so the order
resources are processed in does not matter.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .hierarchy import MAX_DEPTH, resolve_slug
from .report import Report
from .sqldump import parse_dump
from .tables import CONTENT, TableIndex
from .tags import TagResolver, find_assets

log = logging.getLogger("modx-export")

TV_PREFIX = "tv_"
HOME_TEMPLATE_ID = 1


class AssemblyError(ValueError):
    pass


class MissingContentTable(Exception):
    pass


@dataclass(frozen=True)
class Document:
    id: int
    title: str
    slug: str
    description: str
    template_name: str
    template_vars: dict = field(default_factory=dict)
    body: str = ""
    longtitle: Optional[str] = None
    layout: Optional[str] = None

    @property
    def frontmatter(self):
        # The writer drops None except on TV keys; "" is kept (description: '')
        return {
            "title":       self.title,
            "slug":        self.slug,
            "description": self.description,
            "template":    self.template_name,
            "longtitle":   self.longtitle,
            "layout":      self.layout,
            **self.template_vars,
        }


def template_name(template_id, home_template=HOME_TEMPLATE_ID):
    """The site's home template gets 'home', every other template 'standard'."""
    return "home" if template_id == home_template else "standard"


def assemble_document(row, slug, tv_rows, body, home_template=HOME_TEMPLATE_ID,
                      tv_names=None, layout=None):
    """
    Build the Document for one resource. Raises AssemblyError if the row
    cannot make a complete document.

    TV keys are tv_<tmplvarid>, or tv_<name> when tv_names maps the id to
    the variable's name (falling back to the id for unnamed variables).
    """
    if not row.pagetitle:
        raise AssemblyError(f"resource {row.id} has no pagetitle")
    if not slug:
        raise AssemblyError(f"resource {row.id} resolved to an empty slug")

    tvs = {}
    for tv in tv_rows:
        key = (tv_names or {}).get(tv.tmplvarid) or tv.tmplvarid
        tvs[f"{TV_PREFIX}{key}"] = tv.value

    return Document(
        id=row.id,
        title=row.pagetitle,
        slug=slug,
        description=row.description or "",
        template_name=template_name(row.template, home_template),
        template_vars=tvs,
        body=body,
        longtitle=row.longtitle or None,
        layout=layout,
    )


def build_documents(index, project, report=None, home_template=HOME_TEMPLATE_ID,
                    max_depth=MAX_DEPTH, tv_keys="id"):
    """
    One Document per published, non-deleted resource, in content-table order.

    Resources that fail assembly are counted on report.skipped with a
    warning; unpublished and deleted ones are silently left out.
    """
    report = report or Report()
    tags = TagResolver(index.chunks, project, report)
    tv_names = index.tv_names if tv_keys == "name" else None

    docs = []
    for row in index.content:
        if not row.published or row.deleted:
            continue
        template = index.templates_by_id.get(row.template)
        try:
            doc = assemble_document(
                row,
                resolve_slug(row, index, max_depth, report),
                index.tv_values(row.id),
                tags.resolve(row.content, row.id),
                home_template=home_template,
                tv_names=tv_names,
                layout=template.templatename if template and template.templatename else None,
            )
        except AssemblyError as e:
            report.skipped += 1
            report.warn("Skipping resource %d: %s", row.id, e)
            continue
        docs.append(doc)

    log.info("%d of %d resources are published documents", len(docs), len(index.content))
    return docs


def collect_assets(documents):
    """Sorted, de-duplicated asset paths used by any body or TV value."""
    found = set()
    for doc in documents:
        found.update(find_assets(doc.body))
        for value in doc.template_vars.values():
            if isinstance(value, str):
                found.update(find_assets(value))
    return sorted(found)


def convert_dump(text, project, report=None, prefix="modx_", **options):
    """
    Parse dump text and build its Documents.

    Raises MissingContentTable when the dump has no site_content table
    at all; every other problem ends up as a warning on the report.
    """
    report = report or Report()
    index = TableIndex(parse_dump(text, report), prefix=prefix, report=report)
    if CONTENT not in index:
        raise MissingContentTable(f"no {prefix}{CONTENT} or {CONTENT} INSERTs in dump")
    return build_documents(index, project, report, **options)
