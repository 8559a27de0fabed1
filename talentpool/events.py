"""Pipeline events.

Finishing work and looking for more work are separate steps: the code that
observes a state change publishes here, and each event enqueues the jobs
that react to it.
"""

from flask import current_app

from .extensions import rq


class BatchEvents:

    def batch_queued(self, batch_id):
        from .jobs.drain import drain_pending
        current_app.logger.info('Batch %s queued', batch_id)
        rq.enqueue(drain_pending)

    def chunk_settled(self, dispatch_id):
        from .jobs.drain import drain_pending
        current_app.logger.info('Chunk %s settled', dispatch_id)
        rq.enqueue(drain_pending)

    def batch_terminal(self, batch):
        from .jobs.drain import drain_pending
        from .jobs.notify import notify_batch_complete
        current_app.logger.info('Batch %s reached %s (%d+%d/%d)', batch.id, batch.status,
                                batch.processed_files, batch.failed_files, batch.total_files)
        rq.enqueue(notify_batch_complete, batch.id)
        rq.enqueue(drain_pending)
