from datetime import datetime, timedelta

import pytest

from conftest import pdf_files
from talentpool.errors import NotFound
from talentpool.extensions import db
from talentpool.models import batch as batch_status
from talentpool.models import queue_item as item_status
from talentpool.models.queue_item import QueueItem
from talentpool.services.work_items import WorkItemStore


def _batch(store, user, n, name=None):
    b = store.create_batch({"uploaded_by_id": user.id, "batch_name": name}, n)
    store.create_queue_items(b.id, pdf_files(n, prefix=name or "cv"))
    db.session.commit()
    return b.id


def test_create_batch_starts_pending(app, hr_user):
    store = WorkItemStore()
    bid = _batch(store, hr_user, 3)
    b = store.get_batch(bid)
    assert b.status == batch_status.PENDING
    assert (b.total_files, b.processed_files, b.failed_files) == (3, 0, 0)
    assert store.count_by_status(bid) == {item_status.PENDING: 3}


def test_unknown_ids_raise_not_found(app):
    store = WorkItemStore()
    with pytest.raises(NotFound):
        store.get_batch("nope")
    with pytest.raises(NotFound):
        store.get_item("nope")
    with pytest.raises(NotFound):
        store.set_terminal("nope", item_status.FAILED)


def test_claim_is_fifo_across_batches(app, hr_user):
    store = WorkItemStore()
    first = _batch(store, hr_user, 3, "a")
    second = _batch(store, hr_user, 3, "b")

    claimed = store.claim_pending(4)
    db.session.commit()

    assert [i.file_name for i in claimed] == ["a0.pdf", "a1.pdf", "a2.pdf", "b0.pdf"]
    assert {i.status for i in claimed} == {item_status.PROCESSING}
    assert len({i.dispatch_id for i in claimed}) == 1
    assert store.count_by_status(first) == {item_status.PROCESSING: 3}
    assert store.count_by_status(second) == {item_status.PROCESSING: 1, item_status.PENDING: 2}


def test_claims_never_overlap(app, hr_user):
    store = WorkItemStore()
    _batch(store, hr_user, 7)

    one = store.claim_pending(5)
    two = store.claim_pending(5)
    three = store.claim_pending(5)
    db.session.commit()

    ids_one, ids_two = {i.id for i in one}, {i.id for i in two}
    assert len(ids_one) == 5 and len(ids_two) == 2
    assert not ids_one & ids_two
    assert three == []
    assert one[0].dispatch_id != two[0].dispatch_id


def test_set_terminal_only_from_processing(app, hr_user):
    store = WorkItemStore()
    _batch(store, hr_user, 2)
    item = store.claim_pending(1)[0]

    assert store.set_terminal(item.id, item_status.COMPLETED) is True
    assert store.set_terminal(item.id, item_status.FAILED, "late") is False
    db.session.commit()
    assert store.get_item(item.id).status == item_status.COMPLETED

    pending = QueueItem.query.filter_by(status=item_status.PENDING).one()
    assert store.set_terminal(pending.id, item_status.COMPLETED) is False


def test_finalize_flips_once(app, hr_user):
    store = WorkItemStore()
    bid = _batch(store, hr_user, 2)
    items = store.claim_pending(2)

    store.set_terminal(items[0].id, item_status.COMPLETED)
    store.increment_batch_counters(bid, success=True)
    assert store.finalize_batch_if_complete(bid) is None

    store.set_terminal(items[1].id, item_status.FAILED, "bad pdf")
    store.increment_batch_counters(bid, success=False)
    flipped = store.finalize_batch_if_complete(bid)
    assert flipped is not None
    assert flipped.status == batch_status.PARTIALLY_FAILED
    assert store.finalize_batch_if_complete(bid) is None
    db.session.commit()


def test_all_success_completes(app, hr_user):
    store = WorkItemStore()
    bid = _batch(store, hr_user, 1)
    item = store.claim_pending(1)[0]
    store.set_terminal(item.id, item_status.COMPLETED)
    store.increment_batch_counters(bid, success=True)
    assert store.finalize_batch_if_complete(bid).status == batch_status.COMPLETED


def test_mark_batches_processing_is_conditional(app, hr_user):
    store = WorkItemStore()
    queued = _batch(store, hr_user, 1)
    done = _batch(store, hr_user, 1)
    store.set_batch_status(queued, batch_status.QUEUED)
    store.set_batch_status(done, batch_status.COMPLETED)

    assert store.mark_batches_processing({queued, done}) == 1
    db.session.commit()
    assert store.get_batch(queued, refresh=True).status == batch_status.PROCESSING
    assert store.get_batch(done, refresh=True).status == batch_status.COMPLETED


def test_chunk_settled_and_find_stale(app, hr_user):
    store = WorkItemStore()
    _batch(store, hr_user, 2)
    items = store.claim_pending(2)
    dispatch_id = items[0].dispatch_id
    assert store.chunk_settled(dispatch_id) is False

    store.set_terminal(items[0].id, item_status.COMPLETED)
    assert store.chunk_settled(dispatch_id) is False
    store.set_terminal(items[1].id, item_status.FAILED)
    assert store.chunk_settled(dispatch_id) is True

    assert store.find_stale(datetime.utcnow() + timedelta(seconds=1)) == []


def test_claim_skips_rows_taken_between_select_and_update(app, hr_user, monkeypatch):
    store, rival = WorkItemStore(), WorkItemStore()
    _batch(store, hr_user, 7)
    select_ids = store._pending_ids
    taken = []

    def racing_select(limit, exclude):
        ids = select_ids(limit, exclude)
        if not taken:
            # another caller claims the two oldest rows after our read
            taken.extend(rival.claim_pending(2))
        return ids

    monkeypatch.setattr(store, "_pending_ids", racing_select)
    mine = store.claim_pending(4)
    db.session.commit()

    assert [i.file_name for i in taken] == ["cv0.pdf", "cv1.pdf"]
    assert [i.file_name for i in mine] == ["cv2.pdf", "cv3.pdf", "cv4.pdf", "cv5.pdf"]
    assert not {i.id for i in mine} & {i.id for i in taken}
    assert {i.dispatch_id for i in mine}.isdisjoint({i.dispatch_id for i in taken})
