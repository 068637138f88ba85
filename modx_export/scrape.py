"""
Save the live site's rendered pages next to the converted ones.

Some MODX pages are mostly snippet output (galleries, forms, listings) and
convert to little more than "not executable" comments. For those it helps to
have what the old site actually served, so every resolved slug can be fetched
from the running site and stored as a Markdown file with frontmatter.
"""

import html
import logging
import re
import time

import requests

from .report import Report
from .writer import document_path, frontmatter, to_md, write_md

log = logging.getLogger("modx-export")

USER_AGENT = "modx-export/1.0"

_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.I | re.S)


def page_title(page_html):
    m = _TITLE.search(page_html)
    return html.unescape(m.group(1)).strip() if m else ""


def scrape_pages(site_url, slugs, out_dir, session=None, rate_limit=0.1,
                 body_format="html", report=None):
    """
    GET site_url + slug for every slug and write it under out_dir.

    A page that fails (network error, non-2xx status) is logged and skipped
    so one dead link does not stop the rest. Returns the number of pages
    written.
    """
    report = report or Report()
    if session is None:
        session = requests.Session()
        session.headers["User-Agent"] = USER_AGENT
    site_url = site_url.rstrip("/")

    written = 0
    for page_slug in slugs:
        path = page_slug if page_slug.startswith("/") else f"/{page_slug}"
        url = f"{site_url}{path}"
        try:
            resp = session.get(url, timeout=30)
            time.sleep(rate_limit)  # be a polite client; rate limit after every call
            resp.raise_for_status()
        except Exception as e:
            report.warn("Could not scrape %s: %s", url, e)
            continue

        page = resp.text
        title = page_title(page) or page_slug
        body = to_md(page) if body_format == "markdown" else page
        fm = frontmatter({"title": title, "slug": page_slug, "template": "scraped"})
        write_md(document_path(out_dir, page_slug), f"{fm}\n\n{body}\n", out_dir)
        written += 1

    log.info("Scraped %d/%d pages from %s", written, len(slugs), site_url)
    return written
