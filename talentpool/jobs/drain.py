from flask import current_app

from . import run_in_app_context


def _drain():
    from ..services.scheduler import BatchScheduler
    items = BatchScheduler().drain()
    if not items:
        current_app.logger.info('Drain: nothing pending')
    return len(items)


def drain_pending():
    """RQ entrypoint: claim and dispatch one chunk of pending queue items."""
    return run_in_app_context(_drain)
