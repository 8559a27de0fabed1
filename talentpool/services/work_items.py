"""Batch and queue-item repository.

Every state change is a conditional UPDATE checked through its rowcount, so
two callers racing on the same row cannot both win. Methods never commit;
the calling service owns the transaction.
"""

from datetime import datetime

from sqlalchemy import case, func, select, update

from ..errors import NotFound
from ..extensions import db
from ..models import batch as batch_status
from ..models import queue_item as item_status
from ..models.base import new_id
from ..models.batch import Batch
from ..models.queue_item import QueueItem


class WorkItemStore:

    # ---- batches -------------------------------------------------------

    def create_batch(self, meta, total_files):
        b = Batch(
            batch_name=meta.get("batch_name") or None,
            uploaded_by_id=meta["uploaded_by_id"],
            source_type=meta.get("source_type") or "MANUAL_UPLOAD",
            source_url=meta.get("source_url") or None,
            total_files=total_files,
            status=batch_status.PENDING,
        )
        db.session.add(b)
        db.session.flush()
        return b

    def get_batch(self, batch_id, refresh=False):
        q = select(Batch).where(Batch.id == batch_id)
        if refresh:
            q = q.execution_options(populate_existing=True)
        b = db.session.execute(q).scalar_one_or_none()
        if b is None:
            raise NotFound("Batch", batch_id)
        return b

    def list_batches(self, skip=0, take=20):
        q = select(Batch).order_by(Batch.created_at.desc(), Batch.id).offset(skip).limit(take)
        return db.session.execute(q).scalars().all()

    def set_batch_status(self, batch_id, status):
        res = db.session.execute(
            update(Batch).where(Batch.id == batch_id).values(status=status)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise NotFound("Batch", batch_id)

    def mark_batches_processing(self, batch_ids):
        if not batch_ids:
            return 0
        res = db.session.execute(
            update(Batch)
            .where(Batch.id.in_(list(batch_ids)),
                   Batch.status.in_((batch_status.PENDING, batch_status.QUEUED)))
            .values(status=batch_status.PROCESSING)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def increment_batch_counters(self, batch_id, success):
        col = Batch.processed_files if success else Batch.failed_files
        res = db.session.execute(
            update(Batch).where(Batch.id == batch_id).values({col: col + 1})
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise NotFound("Batch", batch_id)

    def finalize_batch_if_complete(self, batch_id):
        """Flip the batch to its terminal status once every item is accounted for.

        Returns the refreshed batch only to the caller whose UPDATE performed
        the flip, and None to everybody else.
        """
        res = db.session.execute(
            update(Batch)
            .where(Batch.id == batch_id,
                   Batch.status.not_in(batch_status.TERMINAL_STATUSES),
                   Batch.processed_files + Batch.failed_files >= Batch.total_files)
            .values(status=case((Batch.failed_files > 0, batch_status.PARTIALLY_FAILED),
                                else_=batch_status.COMPLETED))
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            return None
        return self.get_batch(batch_id, refresh=True)

    # ---- queue items ---------------------------------------------------

    def create_queue_items(self, batch_id, files):
        now = datetime.utcnow()
        items = [
            QueueItem(batch_id=batch_id, file_url=f["file_url"], file_name=f["file_name"],
                      status=item_status.PENDING, created_at=now, seq=i)
            for i, f in enumerate(files)
        ]
        db.session.add_all(items)
        db.session.flush()
        return items

    def get_item(self, item_id):
        q = select(QueueItem).where(QueueItem.id == item_id).execution_options(populate_existing=True)
        item = db.session.execute(q).scalar_one_or_none()
        if item is None:
            raise NotFound("QueueItem", item_id)
        return item

    def list_items(self, batch_id):
        q = select(QueueItem).where(QueueItem.batch_id == batch_id).order_by(QueueItem.created_at, QueueItem.seq)
        return db.session.execute(q).scalars().all()

    def claim_pending(self, limit):
        """Move up to `limit` oldest PENDING items (any batch) to PROCESSING.

        Candidates are read first, then each is claimed with its own
        `WHERE status='PENDING'` update; rows taken by a concurrent caller are
        skipped and the next-oldest rows are tried instead.
        """
        if limit <= 0:
            return []
        dispatch_id = new_id()
        now = datetime.utcnow()
        claimed = []
        seen = set()
        while len(claimed) < limit:
            ids = self._pending_ids(limit - len(claimed), seen)
            if not ids:
                break
            for item_id in ids:
                seen.add(item_id)
                if self._claim_one(item_id, dispatch_id, now):
                    claimed.append(item_id)
        if not claimed:
            return []
        q = (select(QueueItem).where(QueueItem.id.in_(claimed))
             .order_by(QueueItem.created_at, QueueItem.seq, QueueItem.id)
             .execution_options(populate_existing=True))
        return db.session.execute(q).scalars().all()

    def _pending_ids(self, limit, exclude):
        q = (select(QueueItem.id)
             .where(QueueItem.status == item_status.PENDING)
             .order_by(QueueItem.created_at, QueueItem.seq, QueueItem.id)
             .limit(limit))
        if exclude:
            q = q.where(QueueItem.id.not_in(exclude))
        return db.session.execute(q).scalars().all()

    def _claim_one(self, item_id, dispatch_id, now):
        res = db.session.execute(
            update(QueueItem)
            .where(QueueItem.id == item_id, QueueItem.status == item_status.PENDING)
            .values(status=item_status.PROCESSING, dispatch_id=dispatch_id, claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def set_terminal(self, item_id, status, error=None, expected=item_status.PROCESSING):
        """Conditional transition out of `expected`; False when the item is elsewhere."""
        res = db.session.execute(
            update(QueueItem)
            .where(QueueItem.id == item_id, QueueItem.status == expected)
            .values(status=status, error_msg=error, processed_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 1:
            return True
        if db.session.get(QueueItem, item_id) is None:
            raise NotFound("QueueItem", item_id)
        return False

    def chunk_settled(self, dispatch_id):
        if not dispatch_id:
            return False
        n = db.session.execute(
            select(func.count(QueueItem.id))
            .where(QueueItem.dispatch_id == dispatch_id, QueueItem.status == item_status.PROCESSING)
        ).scalar_one()
        return n == 0

    def find_stale(self, cutoff):
        q = (select(QueueItem)
             .where(QueueItem.status == item_status.PROCESSING, QueueItem.claimed_at < cutoff)
             .order_by(QueueItem.claimed_at)
             .execution_options(populate_existing=True))
        return db.session.execute(q).scalars().all()

    def count_by_status(self, batch_id):
        rows = db.session.execute(
            select(QueueItem.status, func.count(QueueItem.id))
            .where(QueueItem.batch_id == batch_id)
            .group_by(QueueItem.status)
        ).all()
        return {status: n for status, n in rows}
