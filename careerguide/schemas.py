# careerguide/schemas.py
# Pydantic models for the assessment session, generator output, and HTTP contracts.

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Stage(str, Enum):
    """Coarse phase of the assessment conversation."""
    WELCOME = "welcome"
    ASSESSMENT = "assessment"
    CHAT = "chat"
    RECOMMENDATIONS = "recommendations"
    ROADMAP = "roadmap"


class Message(BaseModel):
    """One chat line, either from the student or from the coach."""
    role: Literal["user", "agent"]
    text: str
    timestamp: datetime = Field(default_factory=_utcnow)


class AssessmentQuestion(BaseModel):
    """One fixed assessment question with its quick-reply choices."""
    model_config = ConfigDict(frozen=True)

    text: str
    options: List[str] = Field(default_factory=list)
    max_choices: int = 1  # >1 means "select up to N"; answers stay free text either way


def _title_tier(v):
    # Generators answer "beginner" as often as "Beginner"
    return v.strip().title() if isinstance(v, str) else v


class Recommendation(BaseModel):
    """One candidate career path produced from the assessment answers."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    title: str
    description: str = ""
    match_score: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("match_score", "match_percentage", "match")
    )
    salary_range: Optional[str] = None  # free text like "₹5-25 LPA"
    growth_outlook: Optional[str] = None
    skills: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("skills", "key_skills")
    )
    tasks: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("tasks", "daily_tasks")
    )
    learning_steps: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("learning_steps", "learning_path")
    )
    difficulty: Literal["Beginner", "Intermediate", "Advanced"] = Field(
        default="Intermediate", validation_alias=AliasChoices("difficulty", "difficulty_level")
    )
    demand: Literal["High", "Medium", "Low"] = Field(
        default="Medium", validation_alias=AliasChoices("demand", "industry_demand")
    )
    reasons: List[str] = Field(default_factory=list)
    time_to_proficiency: Optional[str] = None  # e.g. "6-12 months"

    @field_validator("difficulty", "demand", mode="before")
    @classmethod
    def _normalize_tiers(cls, v):
        return _title_tier(v)

    @field_validator("match_score", mode="before")
    @classmethod
    def _round_score(cls, v):
        # One fractional score should not sink the whole batch
        if isinstance(v, float):
            return round(v)
        return v


class RoadmapPhase(BaseModel):
    """A single stretch of the learning plan."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(validation_alias=AliasChoices("name", "phase"))
    duration: str = ""
    description: str = ""
    milestones: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)


class SalaryProgression(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry_level: Optional[str] = None
    mid_level: Optional[str] = None
    senior_level: Optional[str] = None


class Roadmap(BaseModel):
    """Phased learning plan for one selected recommendation."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    career_path: str
    overview: str = ""
    total_duration: Optional[str] = None
    phases: List[RoadmapPhase] = Field(default_factory=list)
    skills: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("skills", "key_skills")
    )
    certifications: List[str] = Field(default_factory=list)
    salary_progression: SalaryProgression = Field(default_factory=SalaryProgression)
    next_steps: List[str] = Field(default_factory=list)


class Session(BaseModel):
    """
    Durable record of one student's progress through the flow.
    Every field has a default so partial snapshots still validate.
    """
    session_id: Optional[str] = None
    stage: Stage = Stage.WELCOME
    question_index: int = 0
    answers: List[str] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    selected_recommendation: Optional[str] = None  # id of one entry in recommendations
    roadmap: Optional[Roadmap] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def find_recommendation(self, rec_id: str) -> Optional[Recommendation]:
        for rec in self.recommendations:
            if rec.id == rec_id:
                return rec
        return None


class StepResult(BaseModel):
    """Outcome of a transition: the committed session plus an optional user-visible notice."""
    session: Session
    notice: Optional[str] = None


class RoadmapHandoff(BaseModel):
    """Payload handed to whatever consumes an accepted roadmap."""
    career_path: str
    roadmap: Roadmap


# ---- HTTP contracts ----

class StartRequest(BaseModel):
    session_id: Optional[str] = None


class AnswerRequest(BaseModel):
    text: str


class SelectRequest(BaseModel):
    recommendation_id: str


class MessageRequest(BaseModel):
    text: str


class SessionResponse(BaseModel):
    """What the client renders after every turn."""
    session: Session
    current_question: Optional[AssessmentQuestion] = None
    question_count: int
    notice: Optional[str] = None
