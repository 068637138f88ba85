#!/usr/bin/env python3
"""
Export a MODX site from its SQL dump to Markdown files with YAML frontmatter.
All config is read from environment variables (see Config below).

No MySQL server is needed: the dump is parsed directly. MODX quirks baked in:
  - Resources only carry their own alias. The full URL is the precomputed
    `uri` column when MODX filled it in, otherwise it has to be rebuilt by
    walking the parent chain (see modx_export/hierarchy.py).
  - Page bodies contain MODX tags. Chunks ([[$name]]) are expanded from
    site_htmlsnippets; snippets and everything else are PHP and are left
    in the output as HTML comments for porting by hand.
  - Media links point at /assets/... on the old site. They are rewritten to
    /<project>/assets/... and MEDIA_SOURCE is copied to PUBLIC_DIR/<project>
    to match.

Output:
  OUTPUT_DIR/<project>/pages/<slug path>.md
  OUTPUT_DIR/<project>/scraped/<slug path>.md   (only with SCRAPE_URL)
"""

import os
import shutil
import sys
import logging
from pathlib import Path

from modx_export import MissingContentTable, Report, collect_assets, convert_dump
from modx_export.hierarchy import MAX_DEPTH as DEFAULT_MAX_DEPTH
from modx_export.scrape import scrape_pages
from modx_export.writer import copy_media, write_documents

# ---- Config -------------------------------------------------------------------------------------------------------------------
DUMP_PATH    = os.environ.get("MODX_DUMP", "")
PROJECT      = os.environ.get("MODX_PROJECT", "")
OUTPUT_DIR   = Path(os.environ.get("OUTPUT_DIR", "/output"))
PUBLIC_DIR   = Path(os.environ.get("PUBLIC_DIR", str(OUTPUT_DIR / "public")))
MEDIA_SOURCE = os.environ.get("MEDIA_SOURCE", "")
TABLE_PREFIX = os.environ.get("TABLE_PREFIX", "modx_")
HOME_TEMPLATE_ID = int(os.environ.get("HOME_TEMPLATE_ID", "1"))
MAX_DEPTH    = int(os.environ.get("MAX_DEPTH", str(DEFAULT_MAX_DEPTH)))
TV_KEYS      = os.environ.get("TV_KEYS", "id").lower()
BODY_FORMAT  = os.environ.get("BODY_FORMAT", "html").lower()
CLEAN_OUTPUT = os.environ.get("CLEAN_OUTPUT", "true").lower() == "true"
SCRAPE_URL   = os.environ.get("SCRAPE_URL", "").rstrip("/")
RATE_LIMIT   = float(os.environ.get("RATE_LIMIT", "0.1"))

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(message)s", datefmt="%H:%M:%S")
log = logging.getLogger("modx-export")


def check_config():
    """Exit with a readable message on settings that would fail later anyway."""
    if not DUMP_PATH or not PROJECT:
        sys.exit("Set MODX_DUMP and MODX_PROJECT in the environment")
    if TV_KEYS not in ("id", "name"):
        sys.exit(f"TV_KEYS must be 'id' or 'name', not {TV_KEYS!r}")
    if BODY_FORMAT not in ("html", "markdown"):
        sys.exit(f"BODY_FORMAT must be 'html' or 'markdown', not {BODY_FORMAT!r}")


def prepare_dir(path):
    """Empty a previous run's output so deleted resources don't linger."""
    if CLEAN_OUTPUT and path.exists():
        shutil.rmtree(path)
        log.info("Cleaned %s", path)
    path.mkdir(parents=True, exist_ok=True)


# ---- Entry point ----------------------------------------------------------------------------------------------------------------
def main():
    check_config()
    log.info("Dump: %s  |  Project: %s  |  Output: %s", DUMP_PATH, PROJECT, OUTPUT_DIR)
    report = Report()

    try:
        # MODX dumps are utf8 but older installs mix in latin1 fragments
        text = Path(DUMP_PATH).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        sys.exit(f"Could not read dump {DUMP_PATH}: {e}")

    log.info("--- Resources")
    try:
        documents = convert_dump(
            text, PROJECT, report,
            prefix=TABLE_PREFIX,
            home_template=HOME_TEMPLATE_ID,
            max_depth=MAX_DEPTH,
            tv_keys=TV_KEYS,
        )
    except MissingContentTable as e:
        sys.exit(f"Nothing to export: {e}. Check TABLE_PREFIX")

    pages_dir = OUTPUT_DIR / PROJECT / "pages"
    prepare_dir(pages_dir)
    report.emitted = write_documents(documents, pages_dir, BODY_FORMAT, report)

    # Media after pages: a missing media folder should not cost us the content
    log.info("--- Media")
    assets = collect_assets(documents)
    log.info("%d asset references in bodies and TVs", len(assets))
    if MEDIA_SOURCE:
        copy_media(MEDIA_SOURCE, PUBLIC_DIR, PROJECT, assets, report)
    else:
        log.info("MEDIA_SOURCE not set, skipping media copy")

    if SCRAPE_URL:
        log.info("--- Scraping %s", SCRAPE_URL)
        scraped_dir = OUTPUT_DIR / PROJECT / "scraped"
        prepare_dir(scraped_dir)
        scrape_pages(SCRAPE_URL, [d.slug for d in documents], scraped_dir,
                     rate_limit=RATE_LIMIT, body_format=BODY_FORMAT, report=report)

    log.info("Done. %s", report.summary())


if __name__ == "__main__":
    main()
