"""Pydantic models for API requests, responses and generated results."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Language = Literal["chinese", "english"]

# =============================================================================
# Request Models
# =============================================================================


class WorkExperienceInput(BaseModel):
    """A real work experience as reported by the user."""

    model_config = ConfigDict(populate_by_name=True)

    company: str = Field(..., description="Company name")
    original_title: str = Field(default="", alias="jobTitle", description="Title actually held")
    business_direction: str = Field(
        default="", alias="businessDirection", description="Business area of the role"
    )
    start_date: str = Field(..., alias="startDate", description="YYYY-MM")
    end_date: str = Field(..., alias="endDate", description='YYYY-MM or "至今"')


class ResumeProfile(BaseModel):
    """The user's own career profile."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100, description="Candidate name")
    birthday: str | None = Field(default=None, description="YYYY-MM")
    ai_message: str = Field(
        default="", alias="aiMessage", max_length=5000, description="Free-text instructions"
    )
    phone: str | None = None
    email: str | None = None
    avatar: str | None = Field(default=None, description="Avatar URL or data URL")
    work_experiences: list[WorkExperienceInput] = Field(
        default_factory=list, alias="workExperiences", max_length=50
    )


class JobData(BaseModel):
    """The target job."""

    title_chinese: str = Field(..., min_length=1, description="Localized job title (Chinese)")
    title_english: str | None = Field(default=None, description="Localized job title (English)")
    description_chinese: str = Field(default="", max_length=20000)
    description_english: str | None = Field(default=None, max_length=20000)
    experience: str = Field(default="", description='Free-text requirement, e.g. "5-10年"')


class GenerateRequest(BaseModel):
    """Request body for the resume enhancement endpoint."""

    resume_profile: ResumeProfile
    job_data: JobData
    language: Language = "chinese"


# =============================================================================
# Generated / Response Models
# =============================================================================


class SkillCategory(BaseModel):
    title: str = Field(..., description="Skill group title")
    items: list[str] = Field(default_factory=list, description="Skills in this group")


class GeneratedWorkExperience(BaseModel):
    """One entry of the generated experience list."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    company: str
    position: str
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")
    responsibilities: list[str] = Field(default_factory=list)


class GeneratedResume(BaseModel):
    """Structured object the model must return."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    position: str
    years_of_experience: int | float | str = Field(..., alias="yearsOfExperience")
    personal_introduction: str = Field(..., alias="personalIntroduction")
    professional_skills: list[SkillCategory] = Field(..., alias="professionalSkills")
    work_experience: list[GeneratedWorkExperience] = Field(..., alias="workExperience")


class ResumeData(BaseModel):
    """Resume record handed to document rendering."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    position: str
    birthday: str | None = None
    phone: str | None = None
    email: str | None = None
    avatar: str | None = None
    years_of_experience: int | float | str | None = Field(default=None, alias="yearsOfExperience")
    personal_introduction: str = Field(default="", alias="personalIntroduction")
    professional_skills: list[SkillCategory] = Field(
        default_factory=list, alias="professionalSkills"
    )
    work_experience: list[GeneratedWorkExperience] = Field(
        default_factory=list, alias="workExperience"
    )


# =============================================================================
# Health API Models
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"] = Field(..., description="Service status")
    llm_configured: bool = Field(..., description="Whether an OpenRouter key or mock mode is set")
    candidate_models: list[str] = Field(..., description="Models tried in order")
    version: str = Field(..., description="API version")


class LLMConnectivityResponse(BaseModel):
    """Response for the LLM connectivity check."""

    success: bool
    message: str
    details: dict[str, str] | None = None
