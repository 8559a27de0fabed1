"""Deduplicated talent-pool candidates and their per-job screenings."""

from flask import current_app
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import flag_modified

from ..errors import NotFound, ReconciliationError
from ..extensions import db
from ..models.candidate import Candidate, PROFILE_FIELDS
from ..models.job_vacancy import JobVacancy
from ..models.screening import Screening


def _norm(val):
    return (val or "").strip().lower()


# identity of one profile entry when merging repeat uploads
PROFILE_KEYS = {
    "skills": lambda s: _norm(s),
    "education": lambda e: _norm(e.get("institution")),
    "work_experience": lambda w: f"{_norm(w.get('company'))}-{_norm(w.get('position') or w.get('title'))}",
    "certifications": lambda c: _norm(c.get("name") or c.get("title")),
    "organization_experience": lambda o: _norm(o.get("organization") or o.get("name")),
}


class CandidateStore:

    def email_lookup(self, email, for_update=False):
        q = select(Candidate).where(Candidate.email == email)
        if for_update:
            # profile merges rewrite the JSON columns; serialize them per candidate
            q = q.with_for_update()
        return q

    def find_by_email(self, email, for_update=False):
        if not email:
            return None
        return db.session.execute(self.email_lookup(email, for_update)).scalar_one_or_none()

    def get(self, candidate_id):
        c = db.session.get(Candidate, candidate_id)
        if c is None:
            raise NotFound("Candidate", candidate_id)
        return c

    def create_or_get(self, batch_id, payload):
        """Insert a candidate for `payload`, or return the row that owns its email.

        Returns `(candidate, created)`. The unique index on email decides
        concurrent inserts; the loser gets the winner's row back.
        """
        email = payload.dedup_email
        existing = self.find_by_email(email)
        if existing is not None:
            return existing, False

        profile = payload.profile()
        c = Candidate(
            batch_id=batch_id,
            full_name=payload.full_name,
            email=email,
            phone=payload.phone,
            city=payload.city,
            linkedin=payload.linkedin,
            cv_file_url=payload.cv_file_url,
            cv_file_name=payload.cv_file_name,
            hr_status="PENDING",
            **profile,
        )
        try:
            with db.session.begin_nested():
                db.session.add(c)
        except IntegrityError:
            winner = self.find_by_email(email, for_update=True)
            if winner is None:
                raise ReconciliationError(f"candidate insert failed for {email!r} and no owner row exists")
            current_app.logger.info('Lost candidate insert race for %s, merging into %s', email, winner.id)
            return winner, False
        return c, True

    def merge_profile(self, candidate, payload):
        """Append profile entries the candidate does not have yet. Returns the number added."""
        added = 0
        incoming = payload.profile()
        for field in PROFILE_FIELDS:
            key = PROFILE_KEYS[field]
            current = list(getattr(candidate, field) or [])
            known = {key(entry) for entry in current}
            for entry in incoming[field]:
                k = key(entry)
                if not k or k in known:
                    continue
                current.append(entry)
                known.add(k)
                added += 1
            setattr(candidate, field, current)
            flag_modified(candidate, field)
        db.session.flush()
        return added

    def screened_job_ids(self, candidate_id):
        rows = db.session.execute(
            select(Screening.job_vacancy_id).where(Screening.candidate_id == candidate_id)
        ).scalars().all()
        return set(rows)

    def add_screenings(self, candidate_id, screenings):
        """Insert screenings for jobs this candidate has no row for yet."""
        existing = self.screened_job_ids(candidate_id)
        created = []
        for s in screenings:
            if s.job_vacancy_id in existing:
                continue
            row = Screening(
                candidate_id=candidate_id,
                job_vacancy_id=s.job_vacancy_id,
                fit_score=s.fit_score,
                ai_match_status=s.ai_match_status,
                ai_insight=s.ai_insight,
                ai_interview=s.ai_interview,
                ai_core_value=s.ai_core_value,
            )
            try:
                with db.session.begin_nested():
                    db.session.add(row)
            except IntegrityError:
                # another callback screened the same pair first
                current_app.logger.info('Screening %s/%s already exists', candidate_id, s.job_vacancy_id)
                continue
            existing.add(s.job_vacancy_id)
            created.append(row)
        return created

    # ---- query surface -------------------------------------------------

    def list(self, batch_id=None, job_vacancy_id=None, hr_status=None, min_score=None,
             search=None, skip=0, take=20):
        q = select(Candidate)
        if batch_id:
            q = q.where(Candidate.batch_id == batch_id)
        if hr_status:
            q = q.where(Candidate.hr_status == hr_status)
        if search:
            like = f"%{search}%"
            q = q.where(or_(Candidate.full_name.ilike(like), Candidate.email.ilike(like)))
        if job_vacancy_id or min_score is not None:
            sub = select(Screening.candidate_id)
            if job_vacancy_id:
                sub = sub.where(Screening.job_vacancy_id == job_vacancy_id)
            if min_score is not None:
                sub = sub.where(Screening.fit_score >= min_score)
            q = q.where(Candidate.id.in_(sub))

        total = db.session.execute(select(func.count()).select_from(q.subquery())).scalar_one()
        items = db.session.execute(
            q.order_by(Candidate.created_at.desc(), Candidate.id).offset(skip).limit(take)
        ).scalars().all()
        return items, total

    def update_hr_status(self, candidate_id, hr_status, hr_notes=None, processed_to_step=None):
        c = self.get(candidate_id)
        c.hr_status = hr_status
        if hr_notes is not None:
            c.hr_notes = hr_notes
        if processed_to_step is not None:
            c.processed_to_step = processed_to_step
        db.session.flush()
        return c

    def bulk_update_hr_status(self, candidate_ids, hr_status, processed_to_step=None):
        if not candidate_ids:
            return 0
        values = {"hr_status": hr_status}
        if processed_to_step is not None:
            values["processed_to_step"] = processed_to_step
        res = db.session.execute(
            update(Candidate).where(Candidate.id.in_(candidate_ids)).values(**values)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def open_jobs(self):
        return db.session.execute(
            select(JobVacancy).where(JobVacancy.status == "OPEN").order_by(JobVacancy.title)
        ).scalars().all()
