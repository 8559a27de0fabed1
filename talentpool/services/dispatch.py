"""One-way client shipping a chunk of queue items to the scoring worker."""

from flask import current_app
import requests

from ..errors import DispatchError
from .storage import public_url


def build_manifest(items):
    return {
        "queueItems": [
            {
                "queueItemId": item.id,
                "batchId": item.batch_id,
                "fileUrl": public_url(item.file_url),
                "fileName": item.file_name,
            }
            for item in items
        ]
    }


class DispatchClient:
    """POSTs one manifest per chunk; results arrive later as callbacks.

    A transport failure fails every item of the chunk through `engine`,
    because the worker is addressed once per chunk.
    """

    def __init__(self, engine=None, webhook_url=None, timeout=None):
        if engine is None:
            from .reconcile import ReconciliationEngine
            engine = ReconciliationEngine()
        self.engine = engine
        self.webhook_url = webhook_url or current_app.config.get('DISPATCH_WEBHOOK_URL')
        self.timeout = timeout or current_app.config.get('DISPATCH_TIMEOUT', 120)

    def _post(self, manifest):
        if not self.webhook_url:
            raise DispatchError("dispatch webhook not configured")
        try:
            r = requests.post(self.webhook_url, json=manifest, timeout=self.timeout,
                              headers={'Content-Type': 'application/json'})
            r.raise_for_status()
        except requests.RequestException as e:
            raise DispatchError(str(e)) from e

    def send(self, items):
        """Ship `items`; returns True when the worker accepted the chunk."""
        if not items:
            return True
        try:
            self._post(build_manifest(items))
        except DispatchError as e:
            current_app.logger.warning('Dispatch of %d items failed: %s', len(items), e.message)
            self.engine.fail_items(items, f"dispatch error: {e.message}")
            return False
        current_app.logger.info('Dispatched %d items (chunk %s)', len(items), items[0].dispatch_id)
        return True
