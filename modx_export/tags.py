"""
MODX inline tags in page bodies.

  [[$footer]]              chunk: reusable markup, expanded here
  [[$card? &title=`Hi`]]   chunk with properties, expanded as stored
  [[!Gallery? &dir=`x`]]   snippet call (PHP); ! marks it uncached
  [[*pagetitle]], [[~12]]  field / link tags, also evaluated by PHP

Only chunks are expanded. Anything else would need the MODX runtime, so it
is wrapped in an HTML comment with the tag kept verbatim for someone to port
by hand.
"""

import re

from .report import Report

_BRACKETS = re.compile(r"\[\[|\]\]")
_CHUNK = re.compile(r"!?\$([^\s?:@&`\]]+)", re.S)

# src="/assets/x.png", href='assets/files/a.pdf' and the like; group 3 is the quote
_ASSET_ATTR = re.compile(r"""\b(src|href)(\s*=\s*)(["'])/?(assets/[^"']*)\3""", re.I)

# Asset references a media copy has to provide
_ASSET_REF = re.compile(r"assets/(?:images|files|uploads|userupload)/[^\s\"'<>]+")

CHUNK_OPEN = "<!-- chunk: {} -->"
CHUNK_CLOSE = "<!-- /chunk: {} -->"
CHUNK_MISSING = "<!-- unresolved chunk: {} -->"
NOT_EXECUTABLE = "<!-- not executable: {} -->"


def iter_tags(body):
    """
    Yield (start, end) of every top-level [[...]] tag in body.

    Brackets nest: in [[$card? &link=`[[~5]]`]] the inner tag belongs to the
    outer one. A [[ that is never closed is skipped and scanning carries on
    after it.
    """
    pos = 0
    while True:
        start = body.find("[[", pos)
        if start < 0:
            return
        depth = 0
        for m in _BRACKETS.finditer(body, start):
            depth += 1 if m.group(0) == "[[" else -1
            if depth == 0:
                yield start, m.end()
                pos = m.end()
                break
        else:
            pos = start + 2


def rewrite_assets(html, project):
    """Point /assets/... and assets/... attribute values at /<project>/assets/..."""
    if not project:
        return html
    return _ASSET_ATTR.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{m.group(3)}/{project}/{m.group(4)}{m.group(3)}",
        html,
    )


def find_assets(text):
    """Asset paths (assets/images/..., assets/files/..., ...) referenced in text."""
    if not text:
        return []
    return _ASSET_REF.findall(text)


class TagResolver:
    """
    Expands chunks, neutralises everything else, rewrites asset paths.

    One pass over the body: chunk content is inserted as stored and never
    scanned again, so a chunk that references itself (or another chunk)
    cannot recurse. Asset rewriting covers the literal body text and the
    inserted chunks, but not the neutralised tags, which stay byte-for-byte
    what the source had.
    """

    def __init__(self, chunks, project, report=None):
        self.chunks = chunks
        self.project = project
        self.report = report or Report()

    def resolve(self, body, resource_id=None):
        if not body:
            return ""
        out, pos = [], 0
        for start, end in iter_tags(body):
            out.append(rewrite_assets(body[pos:start], self.project))
            out.append(self.replace_tag(body[start:end], resource_id))
            pos = end
        out.append(rewrite_assets(body[pos:], self.project))
        return "".join(out)

    def replace_tag(self, tag, resource_id=None):
        m = _CHUNK.match(tag, 2)
        if not m:
            return NOT_EXECUTABLE.format(tag)

        name = m.group(1)
        chunk = self.chunks.get(name)
        if chunk is None:
            self.report.warn("Resource %s: unresolved chunk %s", resource_id, name)
            return CHUNK_MISSING.format(name)
        return (CHUNK_OPEN.format(name)
                + rewrite_assets(chunk.snippet, self.project)
                + CHUNK_CLOSE.format(name))
