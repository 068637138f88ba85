import logging
import re
import shutil
from pathlib import Path

import yaml
from markdownify import markdownify
from slugify import slugify

from .report import Report

log = logging.getLogger("modx-export")

MD_HEADING = "ATX"

# MODX friendly URLs usually carry a container suffix the SSG adds itself
_URL_SUFFIX = re.compile(r"\.(html?|php)$", re.I)

# markdownify drops HTML comments; they are parked as plain words and put back
_COMMENT = re.compile(r"<!--.*?-->", re.S)
_PARKED = re.compile(r"MODXCOMMENT(\d+)X")


def to_md(html):
    """
    Convert a resource body to Markdown.

    HTML comments (chunk markers, neutralised tags) are carried over verbatim,
    Markdown renders them as raw HTML.
    """
    if not html:
        return ""
    comments = []

    def park(m):
        comments.append(m.group(0))
        return f"MODXCOMMENT{len(comments) - 1}X"

    result = markdownify(_COMMENT.sub(park, html), heading_style=MD_HEADING, bullets="-",
                         strip=["script", "style"], newline_style="backslash")
    result = _PARKED.sub(lambda m: comments[int(m.group(1))], result)
    # markdownify can leave runs of 3+ blank lines around block elements; collapse them
    return re.sub(r"\n{3,}", "\n\n", result).strip()


def frontmatter(fields, keep=()):
    """
    Render a YAML frontmatter block from a dict, skipping None values.

    None means "not applicable for this resource" (no longtitle, no template
    row in the dump). An empty description is kept: the site templates
    read it unconditionally. Keys in keep are written even when None, as
    YAML null.
    """
    clean = {k: v for k, v in fields.items() if v is not None or k in keep}
    return "---\n" + yaml.dump(clean, allow_unicode=True, default_flow_style=False, sort_keys=False) + "---"


def slug(text):
    """URL-safe slug, max 80 chars. Falls back to 'untitled' if text is empty or all symbols."""
    return slugify(str(text), max_length=80, separator="-") or "untitled"


def document_path(pages_dir, doc_slug):
    """
    File path for a slug: /services/pool.html -> pages_dir/services/pool.md.
    The root slug '/' becomes index.md.
    """
    segments = [s for s in doc_slug.split("/") if s]
    if not segments:
        return Path(pages_dir) / "index.md"
    segments[-1] = _URL_SUFFIX.sub("", segments[-1])
    return Path(pages_dir).joinpath(*(slug(s) for s in segments[:-1]), f"{slug(segments[-1])}.md")


def render_document(doc, body_format="html"):
    # TV keys stay even when the stored value is NULL
    body = to_md(doc.body) if body_format == "markdown" else doc.body
    return f"{frontmatter(doc.frontmatter, keep=doc.template_vars)}\n\n{body}\n"


def write_md(path, content, root=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    log.info("  wrote %s", path.relative_to(root) if root else path)


def write_documents(documents, pages_dir, body_format="html", report=None):
    """
    Write every document under pages_dir and return how many were written.

    Two resources can resolve to the same file (same alias under different
    parents once slugified, or a uri clash). The later one gets its id
    appended instead of silently overwriting the first, plus a counter if
    that name is taken as well.
    """
    report = report or Report()
    pages_dir = Path(pages_dir)
    used, written = set(), 0
    for doc in documents:
        path = document_path(pages_dir, doc.slug)
        if path in used:
            clash, n = path, 1
            path = path.with_name(f"{clash.stem}-{doc.id}.md")
            while path in used:
                n += 1
                path = path.with_name(f"{clash.stem}-{doc.id}-{n}.md")
            report.warn("Resource %d: %s already written, using %s",
                        doc.id, clash.relative_to(pages_dir), path.name)
        used.add(path)
        write_md(path, render_document(doc, body_format), pages_dir)
        written += 1
    return written


def copy_media(source, public_dir, project, assets=(), report=None):
    """
    Copy the site's media tree to public_dir/<project>, which is where the
    rewritten /<project>/assets/... paths point.

    source should be the directory that contains assets/. Referenced assets
    that are not in it are reported, since those links will be broken on the
    new site. Returns False if there was nothing to copy.
    """
    report = report or Report()
    source = Path(source)
    if not source.is_dir():
        report.warn("Media source not found: %s", source)
        return False

    target = Path(public_dir) / project
    shutil.copytree(source, target, dirs_exist_ok=True)
    log.info("Media copied to %s", target)

    missing = [a for a in assets if not (source / a).exists()]
    for asset in missing:
        report.warn("Referenced asset missing from media source: %s", asset)
    return True
