from ..extensions import db
from .base import TimestampMixin

class JobVacancy(db.Model, TimestampMixin):
    __tablename__ = "job_vacancies"
    id = db.Column(db.String(64), primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    division = db.Column(db.String(120))
    department = db.Column(db.String(120))
    description = db.Column(db.Text)
    required_skills = db.Column(db.JSON)  # ["Python","SQL"]
    status = db.Column(db.String(20), default="OPEN", index=True)  # OPEN/CLOSED

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "division": self.division,
            "department": self.department,
            "description": self.description,
            "requiredSkills": self.required_skills or [],
            "status": self.status,
        }
