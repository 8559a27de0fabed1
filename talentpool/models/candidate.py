from ..extensions import db
from .base import TimestampMixin, new_id

HR_STATUSES = ("PENDING", "REVIEWED", "SHORTLISTED", "PROCESSED", "REJECTED")

# JSON list columns holding the extracted profile
PROFILE_FIELDS = ("education", "work_experience", "skills", "certifications", "organization_experience")


class Candidate(db.Model, TimestampMixin):
    __tablename__ = "talent_pool_candidates"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    # batch of origin; later batches only merge into this row
    batch_id = db.Column(db.String(36), db.ForeignKey("talent_pool_batches.id"), nullable=False, index=True)
    full_name = db.Column(db.String(255), nullable=False)
    # dedup key across all batches
    email = db.Column(db.String(254), unique=True, index=True)
    phone = db.Column(db.String(40))
    city = db.Column(db.String(120))
    linkedin = db.Column(db.String(512))

    education = db.Column(db.JSON)                # [{"institution":..,"major":..,"gpa":..}]
    work_experience = db.Column(db.JSON)          # [{"company":..,"position":..}]
    skills = db.Column(db.JSON)                   # ["Python","SQL"]
    certifications = db.Column(db.JSON)           # [{"name":..,"issuer":..}]
    organization_experience = db.Column(db.JSON)  # [{"organization":..,"role":..}]

    cv_file_url = db.Column(db.String(1024), nullable=False)
    cv_file_name = db.Column(db.String(255), nullable=False)

    hr_status = db.Column(db.String(20), nullable=False, default="PENDING", index=True)
    hr_notes = db.Column(db.Text)
    processed_to_step = db.Column(db.String(120))

    batch = db.relationship("Batch", lazy="select")
    screenings = db.relationship(
        "Screening",
        back_populates="candidate",
        order_by="Screening.fit_score.desc()",
        lazy="select",
    )

    def to_dict(self, with_screenings=True):
        out = {
            "id": self.id,
            "batchId": self.batch_id,
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "city": self.city,
            "linkedin": self.linkedin,
            "education": self.education or [],
            "workExperience": self.work_experience or [],
            "skills": self.skills or [],
            "certifications": self.certifications or [],
            "organizationExperience": self.organization_experience or [],
            "cvFileUrl": self.cv_file_url,
            "cvFileName": self.cv_file_name,
            "hrStatus": self.hr_status,
            "hrNotes": self.hr_notes,
            "processedToStep": self.processed_to_step,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if with_screenings:
            out["screenings"] = [s.to_dict() for s in self.screenings]
        return out

    def __repr__(self) -> str:
        return f"<Candidate id={self.id} email={self.email!r}>"
