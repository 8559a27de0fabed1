from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from redis import Redis
from rq import Queue
from flask import current_app

# kwargs understood by Queue.enqueue but not by the job function itself
RQ_KEYS = {'job_timeout', 'timeout', 'at_front', 'depends_on', 'result_ttl', 'ttl',
           'failure_ttl', 'meta', 'description', 'job_id'}


class RQWrapper:
    def __init__(self):
        self.redis = None
        self.queue = None

    def init_app(self, app):
        self.redis = None
        self.queue = None
        if not app.config.get("RQ_ASYNC", True):
            return
        try:
            self.redis = Redis.from_url(app.config.get("REDIS_URL"))
            self.queue = Queue(app.config.get("RQ_QUEUE", "default"), connection=self.redis)
        except Exception:
            # no Redis: jobs run inline in the calling process
            app.logger.exception('Redis/RQ init failed, falling back to sync execution')
            self.redis = None
            self.queue = None

    def _run_inline(self, func, *args, **kwargs):
        safe_kwargs = {k: v for k, v in kwargs.items() if k not in RQ_KEYS}
        try:
            return func(*args, **safe_kwargs)
        except Exception:
            # a failed job must not fail the code that enqueued it
            current_app.logger.exception('Inline job %s failed', getattr(func, '__name__', func))
            return None

    def enqueue(self, func, *args, **kwargs):
        if not self.queue:
            return self._run_inline(func, *args, **kwargs)
        try:
            return self.queue.enqueue(func, *args, **kwargs)
        except Exception:
            current_app.logger.exception('RQ enqueue failed, falling back to sync execution')
            return self._run_inline(func, *args, **kwargs)


db = SQLAlchemy()
login_manager = LoginManager()
rq = RQWrapper()
