"""Convert a MODX SQL dump into Markdown documents for a static-site generator."""

from .documents import (
    AssemblyError,
    Document,
    MissingContentTable,
    build_documents,
    collect_assets,
    convert_dump,
)
from .report import Report

__version__ = "1.0.0"
