from . import run_in_app_context


def _notify(batch_id):
    from ..services.notifications import NotificationBridge
    from ..services.work_items import WorkItemStore
    batch = WorkItemStore().get_batch(batch_id, refresh=True)
    n = NotificationBridge().on_batch_terminal(batch)
    return n.id if n is not None else None


def notify_batch_complete(batch_id: str):
    return run_in_app_context(_notify, batch_id)
