"""Drains the global pending pool one chunk at a time."""

from flask import current_app

from ..extensions import db
from .dispatch import DispatchClient
from .work_items import WorkItemStore


class BatchScheduler:
    """FIFO across all batches, one dispatch call per chunk.

    `drain()` may run concurrently with itself; exclusivity comes from
    `WorkItemStore.claim_pending`, and the claim is committed before the
    network call so a slow worker never holds row locks.
    """

    def __init__(self, store=None, client=None, chunk_size=None):
        self.store = store or WorkItemStore()
        self.client = client or DispatchClient()
        self.chunk_size = chunk_size or current_app.config.get('DISPATCH_CHUNK_SIZE', 10)

    def drain(self):
        items = self.store.claim_pending(self.chunk_size)
        if not items:
            db.session.commit()
            return []
        self.store.mark_batches_processing({i.batch_id for i in items})
        db.session.commit()
        current_app.logger.info('Claimed %d items across %d batches',
                                len(items), len({i.batch_id for i in items}))
        self.client.send(items)
        return items
