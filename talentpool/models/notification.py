from ..extensions import db
from .base import TimestampMixin

class Notification(db.Model, TimestampMixin):
    __tablename__ = "notifications"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # one completion notice per batch
    batch_id = db.Column(db.String(36), db.ForeignKey("talent_pool_batches.id"), unique=True)
    type = db.Column(db.String(50), default="TALENT_POOL_COMPLETE")
    title = db.Column(db.String(255))
    message = db.Column(db.Text)
    data = db.Column(db.JSON)
    sent_to = db.Column(db.String(255))
    provider_message_id = db.Column(db.String(255))
    sent_at = db.Column(db.DateTime)
    read_at = db.Column(db.DateTime)
