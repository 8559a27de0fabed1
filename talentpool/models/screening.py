from ..extensions import db
from .base import TimestampMixin

STRONG_MATCH = "STRONG_MATCH"
MATCH = "MATCH"
NOT_MATCH = "NOT_MATCH"
MATCH_STATUSES = (STRONG_MATCH, MATCH, NOT_MATCH)


class Screening(db.Model, TimestampMixin):
    __tablename__ = "talent_pool_screenings"

    id = db.Column(db.Integer, primary_key=True)
    candidate_id = db.Column(db.String(36), db.ForeignKey("talent_pool_candidates.id"), nullable=False, index=True)
    # vacancy id owned by the jobs system; no FK
    job_vacancy_id = db.Column(db.String(64), nullable=False, index=True)
    fit_score = db.Column(db.Float, nullable=False)
    ai_match_status = db.Column(db.String(20), nullable=False)
    ai_insight = db.Column(db.Text)
    ai_interview = db.Column(db.Text)
    ai_core_value = db.Column(db.Text)

    candidate = db.relationship("Candidate", back_populates="screenings")

    __table_args__ = (
        db.UniqueConstraint("candidate_id", "job_vacancy_id", name="uq_screening_candidate_job"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "jobVacancyId": self.job_vacancy_id,
            "fitScore": self.fit_score,
            "aiMatchStatus": self.ai_match_status,
            "aiInsight": self.ai_insight,
            "aiInterview": self.ai_interview,
            "aiCoreValue": self.ai_core_value,
        }

    def __repr__(self) -> str:
        return f"<Screening candidate_id={self.candidate_id} job={self.job_vacancy_id} score={self.fit_score}>"
