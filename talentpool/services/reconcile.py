"""Callback reconciliation.

One callback resolves one PROCESSING queue item:

    Err                          -> item FAILED,    batch.failed += 1
    Ok, email already in pool    -> item DUPLICATE, batch.processed += 1,
                                    screenings for unscreened jobs merged as-is
    Ok, new email / no email     -> item COMPLETED, batch.processed += 1,
                                    candidate created, screenings filtered by
                                    the acceptance threshold

The item transition is conditional on PROCESSING and runs before any other
write, so a replayed callback changes nothing. Counters, candidate rows and
the terminal flip of the batch commit together.
"""

from flask import current_app

from ..errors import InvalidTransition, ReconciliationError
from ..events import BatchEvents
from ..extensions import db
from ..models import queue_item as item_status
from ..models.screening import NOT_MATCH
from ..schemas import Err
from .candidates import CandidateStore
from .work_items import WorkItemStore


def passes_threshold(screening, threshold):
    return screening.fit_score >= threshold or screening.ai_match_status != NOT_MATCH


class ReconciliationEngine:

    def __init__(self, store=None, candidates=None, events=None, threshold=None, replay_policy=None):
        self.store = store or WorkItemStore()
        self.candidates = candidates or CandidateStore()
        self.events = events or BatchEvents()
        self.threshold = threshold if threshold is not None else current_app.config.get('ACCEPTANCE_THRESHOLD', 65)
        self.replay_policy = replay_policy or current_app.config.get('CALLBACK_REPLAY_POLICY', 'ignore')

    def handle(self, result):
        """Apply one parsed callback. Returns a summary dict for the caller."""
        item = self.store.get_item(result.queue_item_id)
        if item.batch_id != result.batch_id:
            raise ReconciliationError(
                f"queue item {item.id} belongs to batch {item.batch_id}, not {result.batch_id}")

        if isinstance(result.outcome, Err):
            summary = self._fail(item, result.outcome.reason)
        else:
            summary = self._succeed(item, result.outcome.payload)
        if summary is None:
            return self._replay(item)

        terminal = self.store.finalize_batch_if_complete(item.batch_id)
        settled = self.store.chunk_settled(item.dispatch_id)
        db.session.commit()

        if terminal is not None:
            self.events.batch_terminal(terminal)
        if settled:
            self.events.chunk_settled(item.dispatch_id)
        return summary

    def _fail(self, item, reason):
        if not self.store.set_terminal(item.id, item_status.FAILED, reason):
            return None
        self.store.increment_batch_counters(item.batch_id, success=False)
        current_app.logger.info('Queue item %s failed: %s', item.id, reason)
        return {"success": False, "status": item_status.FAILED, "queueItemId": item.id}

    def _succeed(self, item, payload):
        existing = self.candidates.find_by_email(payload.dedup_email, for_update=True)
        status = item_status.DUPLICATE if existing is not None else item_status.COMPLETED
        if not self.store.set_terminal(item.id, status):
            return None

        if existing is None:
            candidate, created = self.candidates.create_or_get(item.batch_id, payload)
            if not created:
                # a concurrent callback inserted this email first
                self.store.set_terminal(item.id, item_status.DUPLICATE, expected=item_status.COMPLETED)
                status = item_status.DUPLICATE
        else:
            candidate, created = existing, False

        if created:
            accepted = [s for s in payload.screenings if passes_threshold(s, self.threshold)]
            added = self.candidates.add_screenings(candidate.id, accepted)
            current_app.logger.info('Created candidate %s with %d/%d screenings',
                                    candidate.id, len(added), len(payload.screenings))
        else:
            merged = self.candidates.merge_profile(candidate, payload)
            added = self.candidates.add_screenings(candidate.id, payload.screenings)
            current_app.logger.info('Duplicate candidate %s: %d profile entries, %d new screenings',
                                    candidate.id, merged, len(added))

        self.store.increment_batch_counters(item.batch_id, success=True)
        return {"success": True, "status": status, "queueItemId": item.id, "candidateId": candidate.id}

    def _replay(self, item):
        db.session.rollback()
        current = self.store.get_item(item.id)
        msg = f"callback for queue item {current.id} ignored: item is {current.status}, not PROCESSING"
        if self.replay_policy == 'error':
            raise InvalidTransition(msg)
        current_app.logger.warning(msg)
        return {"success": False, "status": current.status, "queueItemId": current.id, "ignored": True}

    def fail_items(self, items, reason):
        """Fail a set of PROCESSING items at once (dispatch failure, deadline sweep)."""
        failed = []
        for item in items:
            if self.store.set_terminal(item.id, item_status.FAILED, reason):
                self.store.increment_batch_counters(item.batch_id, success=False)
                failed.append(item)

        batch_ids = sorted({i.batch_id for i in failed})
        terminal = [b for b in (self.store.finalize_batch_if_complete(bid) for bid in batch_ids) if b is not None]
        dispatch_ids = sorted({i.dispatch_id for i in failed if i.dispatch_id})
        settled = [d for d in dispatch_ids if self.store.chunk_settled(d)]
        db.session.commit()

        for batch in terminal:
            self.events.batch_terminal(batch)
        for dispatch_id in settled:
            self.events.chunk_settled(dispatch_id)
        return failed
