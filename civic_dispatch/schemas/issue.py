from enum import Enum as PyEnum
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator, model_validator

CATEGORIES = (
    "Pothole",
    "Water Leakage",
    "Garbage",
    "Street Light",
    "Sewage/Drainage",
    "Public Park/Property",
    "Traffic Signal",
    "Noise Complaint",
    "Illegal Construction",
)


class IssueStatus(str, PyEnum):
    pending = "Pending"
    resolved = "Resolved"


class Priority(str, PyEnum):
    high = "High"
    normal = "Normal"


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Comment(BaseModel):
    text: str
    date: str  # ISO-8601, kept verbatim


class Issue(BaseModel):
    """
    Canonical persisted issue record.

    Python attributes are snake_case; the stored/wire form uses the camelCase
    aliases. Older records that carried the evidence under ``mediaUrl`` or
    ``imagePreview`` are read into ``evidence_ref`` and written back as
    ``evidenceRef`` only.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(gt=0)
    issue_type: str = Field(alias="issueType")
    description: str = ""
    coordinates: Optional[Coordinates] = None
    evidence_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("evidenceRef", "evidence_ref", "mediaUrl", "imagePreview"),
        serialization_alias="evidenceRef",
    )
    status: IssueStatus = IssueStatus.pending
    assigned_name: str = Field(alias="assignedName")
    assigned_phone: str = Field(default="", alias="assignedPhone")
    authority_note: Optional[str] = Field(default=None, alias="authorityNote")
    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)
    comments: List[Comment] = Field(default_factory=list)
    citizen_name: str = Field(default="", alias="citizenName")
    citizen_phone: str = Field(default="", alias="citizenPhone")
    resolved_at: Optional[int] = Field(default=None, alias="resolvedAt")

    @model_validator(mode="after")
    def _resolved_at_matches_status(self):
        if (self.status == IssueStatus.resolved) != (self.resolved_at is not None):
            raise ValueError("resolvedAt must be set exactly when status is Resolved")
        return self

    @property
    def created_at(self) -> int:
        # the id is the creation timestamp in epoch ms
        return self.id

    @property
    def is_resolved(self) -> bool:
        return self.status == IssueStatus.resolved

    def to_record(self) -> dict:
        data = self.model_dump(by_alias=True, mode="json")
        if data.get("resolvedAt") is None:
            data.pop("resolvedAt", None)
        return data


class PrioritizedIssue(Issue):
    priority: Priority = Priority.normal


class IssueCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    issue_type: str = Field(alias="issueType", min_length=1, max_length=120)
    description: str = Field(default="", max_length=4000)
    coordinates: Optional[Coordinates] = None
    # set by the client when the geolocation collaborator failed
    location_failed: bool = Field(default=False, alias="locationFailed")
    evidence_ref: Optional[str] = Field(default=None, alias="evidenceRef")
    citizen_name: str = Field(default="", alias="citizenName", max_length=120)
    citizen_phone: str = Field(default="", alias="citizenPhone", max_length=30)

    @field_validator("issue_type")
    @classmethod
    def _strip_issue_type(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("issueType must not be blank")
        return v


class AssignIn(BaseModel):
    """Omit ``authority`` to take the issue for the calling authority."""
    authority: Optional[str] = None


class NoteIn(BaseModel):
    note: str = Field(max_length=2000)


class VoteIn(BaseModel):
    direction: Literal["up", "down"]


class CommentIn(BaseModel):
    text: str = Field(max_length=2000)
