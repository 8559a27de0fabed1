"""Fail queue items stuck in PROCESSING past the deadline.

Usage:
  python scripts/sweep_stale_items.py            # PROCESSING_DEADLINE_SECONDS
  python scripts/sweep_stale_items.py 1800       # explicit deadline in seconds
  python scripts/sweep_stale_items.py --enqueue  # run as an RQ job instead

Meant for cron; a late callback for a swept item is ignored as a replay.
"""

import sys
import os

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from talentpool import create_app
from talentpool.extensions import rq
from talentpool.jobs.sweep import sweep_stale_items


def main(argv):
    enqueue = '--enqueue' in argv
    args = [a for a in argv if a != '--enqueue']
    deadline = int(args[0]) if args else None

    app = create_app()
    with app.app_context():
        if enqueue:
            job = rq.enqueue(sweep_stale_items, deadline)
            print('enqueued', getattr(job, 'id', job))
            return
        failed = sweep_stale_items(deadline)
        print(f'failed {len(failed)} stale items')
        for item_id in failed:
            print(' ', item_id)


if __name__ == '__main__':
    main(sys.argv[1:])
