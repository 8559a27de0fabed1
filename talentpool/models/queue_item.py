from datetime import datetime
from ..extensions import db
from .base import new_id

PENDING = "PENDING"
PROCESSING = "PROCESSING"
COMPLETED = "COMPLETED"
FAILED = "FAILED"
DUPLICATE = "DUPLICATE"

TERMINAL_STATUSES = (COMPLETED, FAILED, DUPLICATE)


class QueueItem(db.Model):
    __tablename__ = "talent_pool_queue"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    batch_id = db.Column(db.String(36), db.ForeignKey("talent_pool_batches.id"), nullable=False, index=True)
    file_url = db.Column(db.String(1024), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    # PENDING -> PROCESSING -> COMPLETED/FAILED/DUPLICATE
    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)
    error_msg = db.Column(db.Text)
    # chunk the item was claimed into
    dispatch_id = db.Column(db.String(36), index=True)
    claimed_at = db.Column(db.DateTime)
    processed_at = db.Column(db.DateTime)
    # FIFO key; seq breaks ties within one bulk insert
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    seq = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "batchId": self.batch_id,
            "fileUrl": self.file_url,
            "fileName": self.file_name,
            "status": self.status,
            "errorMsg": self.error_msg,
            "dispatchId": self.dispatch_id,
            "claimedAt": self.claimed_at.isoformat() if self.claimed_at else None,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
        }

    def __repr__(self) -> str:
        return f"<QueueItem id={self.id} status={self.status}>"
