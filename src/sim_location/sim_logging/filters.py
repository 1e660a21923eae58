"""Log filters for run id defaults."""

import logging


class DefaultRunIdFilter(logging.Filter):
    """Adds default run_id if not present.

    Records logged outside a simulation run (CLI setup, discovery) would
    otherwise break formatters that reference %(run_id)s.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = "-"
        return True
