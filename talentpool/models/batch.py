from ..extensions import db
from .base import TimestampMixin, new_id

PENDING = "PENDING"
QUEUED = "QUEUED"
PROCESSING = "PROCESSING"
COMPLETED = "COMPLETED"
PARTIALLY_FAILED = "PARTIALLY_FAILED"

TERMINAL_STATUSES = (COMPLETED, PARTIALLY_FAILED)
SOURCE_TYPES = ("MANUAL_UPLOAD", "GOOGLE_DRIVE", "ONEDRIVE")


class Batch(db.Model, TimestampMixin):
    __tablename__ = "talent_pool_batches"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    batch_name = db.Column(db.String(255))
    uploaded_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    source_type = db.Column(db.String(20), nullable=False, default="MANUAL_UPLOAD")
    source_url = db.Column(db.String(512))

    total_files = db.Column(db.Integer, nullable=False, default=0)
    processed_files = db.Column(db.Integer, nullable=False, default=0)
    failed_files = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)

    uploaded_by = db.relationship("User", lazy="joined")

    __table_args__ = (
        db.CheckConstraint("processed_files + failed_files <= total_files", name="ck_batch_progress"),
    )

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def display_name(self):
        return self.batch_name or f"Batch {self.id[:8]}"

    def to_dict(self):
        return {
            "id": self.id,
            "batchName": self.batch_name,
            "uploadedById": self.uploaded_by_id,
            "sourceType": self.source_type,
            "sourceUrl": self.source_url,
            "totalFiles": self.total_files,
            "processedFiles": self.processed_files,
            "failedFiles": self.failed_files,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Batch id={self.id} status={self.status} {self.processed_files}+{self.failed_files}/{self.total_files}>"
