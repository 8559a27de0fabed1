"""Callback payload posted by the scoring worker.

`parse_callback` is the only place the raw JSON is inspected; everything
downstream receives a `CallbackResult` whose `outcome` is either `Ok` with a
validated `CandidatePayload` or `Err` with the failure reason.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Entry(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class EducationEntry(_Entry):
    institution: Optional[str] = None
    degree: Optional[str] = None
    major: Optional[str] = None
    gpa: Optional[str] = None
    start_year: Optional[str] = Field(default=None, alias="startYear")
    end_year: Optional[str] = Field(default=None, alias="endYear")


class WorkExperienceEntry(_Entry):
    company: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    description: Optional[str] = None


class CertificationEntry(_Entry):
    name: Optional[str] = None
    issuer: Optional[str] = None
    date: Optional[str] = None


class OrganizationEntry(_Entry):
    organization: Optional[str] = None
    role: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")


class ScreeningResult(BaseModel):
    """Fit of one candidate against one job vacancy."""

    job_vacancy_id: str = Field(alias="jobVacancyId", min_length=1)
    fit_score: float = Field(alias="fitScore", ge=0, le=100)
    ai_match_status: Literal["STRONG_MATCH", "MATCH", "NOT_MATCH"] = Field(alias="aiMatchStatus")
    ai_insight: Optional[str] = Field(default=None, alias="aiInsight")
    ai_interview: Optional[str] = Field(default=None, alias="aiInterview")
    ai_core_value: Optional[str] = Field(default=None, alias="aiCoreValue")

    model_config = ConfigDict(populate_by_name=True)


class CandidatePayload(BaseModel):
    """Candidate profile extracted by the worker, plus its screenings."""

    full_name: str = Field(alias="fullName", min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    linkedin: Optional[str] = None
    education: list[EducationEntry] = Field(default_factory=list)
    work_experience: list[WorkExperienceEntry] = Field(default_factory=list, alias="workExperience")
    skills: list[str] = Field(default_factory=list)
    certifications: list[CertificationEntry] = Field(default_factory=list)
    organization_experience: list[OrganizationEntry] = Field(default_factory=list, alias="organizationExperience")
    cv_file_url: str = Field(alias="cvFileUrl")
    cv_file_name: str = Field(alias="cvFileName")
    screenings: list[ScreeningResult] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def dedup_email(self) -> Optional[str]:
        if not self.email or not self.email.strip():
            return None
        return self.email.strip().lower()

    def profile(self) -> dict[str, Any]:
        """Profile lists in storage shape (JSON-ready, camelCase keys kept)."""
        return {
            "education": [e.model_dump(by_alias=True, exclude_none=True) for e in self.education],
            "work_experience": [w.model_dump(by_alias=True, exclude_none=True) for w in self.work_experience],
            "skills": [s for s in self.skills if s and s.strip()],
            "certifications": [c.model_dump(by_alias=True, exclude_none=True) for c in self.certifications],
            "organization_experience": [
                o.model_dump(by_alias=True, exclude_none=True) for o in self.organization_experience
            ],
        }


class CallbackPayload(BaseModel):
    """Raw callback body as posted by the worker."""

    batch_id: str = Field(alias="batchId", min_length=1)
    queue_item_id: str = Field(alias="queueItemId", min_length=1)
    success: bool
    error_message: Optional[str] = Field(default=None, alias="errorMessage")
    candidate_data: Optional[CandidatePayload] = Field(default=None, alias="candidateData")

    model_config = ConfigDict(populate_by_name=True)


class Ok(BaseModel):
    kind: Literal["ok"] = "ok"
    payload: CandidatePayload


class Err(BaseModel):
    kind: Literal["err"] = "err"
    reason: str


class CallbackResult(BaseModel):
    batch_id: str
    queue_item_id: str
    outcome: Union[Ok, Err] = Field(discriminator="kind")

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Ok)


def parse_callback(data: Any) -> CallbackResult:
    """Validate a callback body and fold it into a tagged result.

    Raises `pydantic.ValidationError` for malformed bodies. A body reporting
    success without candidate data is treated as a failure, matching what the
    worker means by it.
    """
    raw = CallbackPayload.model_validate(data)
    if raw.success and raw.candidate_data is not None:
        outcome: Union[Ok, Err] = Ok(payload=raw.candidate_data)
    elif raw.success:
        outcome = Err(reason=raw.error_message or "worker reported success without candidate data")
    else:
        outcome = Err(reason=raw.error_message or "Unknown error")
    return CallbackResult(batch_id=raw.batch_id, queue_item_id=raw.queue_item_id, outcome=outcome)


HrStatus = Literal["PENDING", "REVIEWED", "SHORTLISTED", "PROCESSED", "REJECTED"]


class StatusUpdate(BaseModel):
    hr_status: HrStatus = Field(alias="hrStatus")
    hr_notes: Optional[str] = Field(default=None, alias="hrNotes")
    processed_to_step: Optional[str] = Field(default=None, alias="processedToStep")

    model_config = ConfigDict(populate_by_name=True)


class BatchAction(BaseModel):
    candidate_ids: list[str] = Field(alias="candidateIds", min_length=1)
    hr_status: HrStatus = Field(alias="hrStatus")
    processed_to_step: Optional[str] = Field(default=None, alias="processedToStep")

    model_config = ConfigDict(populate_by_name=True)
