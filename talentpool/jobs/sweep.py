from datetime import datetime, timedelta

from flask import current_app

from . import run_in_app_context


def _sweep(deadline_seconds):
    from ..services.reconcile import ReconciliationEngine
    from ..services.work_items import WorkItemStore
    if deadline_seconds is None:
        deadline_seconds = current_app.config.get('PROCESSING_DEADLINE_SECONDS', 3600)
    cutoff = datetime.utcnow() - timedelta(seconds=deadline_seconds)
    store = WorkItemStore()
    stale = store.find_stale(cutoff)
    if not stale:
        return []
    failed = ReconciliationEngine(store=store).fail_items(stale, "processing deadline exceeded")
    current_app.logger.warning('Sweep failed %d items claimed before %s', len(failed), cutoff.isoformat())
    return [i.id for i in failed]


def sweep_stale_items(deadline_seconds=None):
    """Fail PROCESSING items whose callback never arrived. Returns the failed item ids."""
    return run_in_app_context(_sweep, deadline_seconds)
