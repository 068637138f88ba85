import logging

log = logging.getLogger("modx-export")


class Report:
    """
    Warning trail and counters for one export run.

    Row-local problems (a malformed INSERT tuple) and resolution-local ones
    (an unknown chunk, a missing ancestor) never raise past the component
    that found them. They land here instead, so a run always ends with a
    count of what was written and what was skipped.
    """

    def __init__(self):
        self.warnings: list[str] = []
        self.emitted = 0
        self.skipped = 0

    def warn(self, msg, *args):
        log.warning(msg, *args)
        self.warnings.append(msg % args if args else msg)

    def summary(self):
        return (f"{self.emitted} documents written, {self.skipped} rows skipped, "
                f"{len(self.warnings)} warnings")
