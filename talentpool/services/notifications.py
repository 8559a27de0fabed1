"""Completion notice sent to the uploader when a batch goes terminal."""

from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models.notification import Notification
from .mail import batch_summary_html, send_batch_summary


def summary_message(batch):
    rate = round(batch.processed_files * 100 / batch.total_files) if batch.total_files else 0
    msg = f"{batch.display_name}: {batch.processed_files}/{batch.total_files} CVs analyzed ({rate}% success)."
    if batch.failed_files:
        msg += f" {batch.failed_files} failed."
    return msg


class NotificationBridge:

    def on_batch_terminal(self, batch):
        """Record one notification for `batch` and email it. Returns the row, or None if already sent."""
        if not batch.is_terminal:
            current_app.logger.warning('Batch %s is %s; not notifying', batch.id, batch.status)
            return None
        if Notification.query.filter_by(batch_id=batch.id).first() is not None:
            return None

        user = batch.uploaded_by
        n = Notification(
            user_id=batch.uploaded_by_id,
            batch_id=batch.id,
            type="TALENT_POOL_COMPLETE",
            title="Talent Pool Analysis Complete",
            message=summary_message(batch),
            data={
                "batchId": batch.id,
                "batchName": batch.batch_name,
                "status": batch.status,
                "totalFiles": batch.total_files,
                "processedFiles": batch.processed_files,
                "failedFiles": batch.failed_files,
            },
        )
        try:
            with db.session.begin_nested():
                db.session.add(n)
        except IntegrityError:
            current_app.logger.info('Batch %s already notified', batch.id)
            return None
        db.session.commit()

        if user is None or not user.email or not current_app.config.get('SENDGRID_API_KEY'):
            return n
        try:
            status, headers = send_batch_summary(user.email, n.title, batch_summary_html(batch, n.message))
        except Exception:
            # the in-app row stands; sent_at stays empty so the miss is visible
            current_app.logger.exception('Batch summary email for %s to %s failed', batch.id, user.email)
            return n
        n.sent_to = user.email
        n.provider_message_id = str(headers or "")
        n.sent_at = datetime.utcnow()
        db.session.commit()
        current_app.logger.info('Sent batch summary for %s to %s (%s)', batch.id, user.email, status)
        return n
