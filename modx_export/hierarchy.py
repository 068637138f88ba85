from .report import Report

ROOT = 0        # parent id of top-level resources
MAX_DEPTH = 50  # ancestor steps before the walk gives up


def resolve_slug(row, index, max_depth=MAX_DEPTH, report=None):
    """
    Canonical URL path for a resource, e.g. '/services/pool-cleaning'.

    MODX keeps a precomputed uri for most resources; when it is set it is
    already the full path and is returned untouched. Otherwise walk the
    parent chain and prepend each ancestor's alias, root-first.

    The walk stops at the root, at an ancestor that is not in the dump, at
    an id it has already visited, or after max_depth steps. The last three
    are recorded as warnings and the path built so far is used, so a broken
    hierarchy degrades to a shorter slug rather than a failed export.
    Aliases that are empty or missing are dropped, never joined as '//'.
    """
    if row.uri:
        return row.uri

    report = report or Report()
    parts, current, seen = [], row, {row.id}
    while current.parent != ROOT:
        if len(seen) > max_depth:
            report.warn("Resource %d: parent chain deeper than %d, slug truncated", row.id, max_depth)
            break
        if current.parent in seen:
            report.warn("Resource %d: parent chain loops back to %d, slug truncated", row.id, current.parent)
            break
        parent = index.content_by_id.get(current.parent)
        if parent is None:
            report.warn("Resource %d: ancestor %d not found in dump", row.id, current.parent)
            break
        parts.insert(0, parent.alias)
        seen.add(parent.id)
        current = parent

    parts.append(row.alias)
    return "/" + "/".join(p for p in parts if p)
