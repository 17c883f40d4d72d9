"""Resume enhancement pipeline.

profile + target job
  -> real intervals -> gap analysis -> supplement segments -> merged timeline
  -> prompt -> ModelInvoker (StructuredResumeValidator)
  -> ResumeData (position forced to the target title)

Every run is request-scoped; nothing is cached between calls.
"""

from datetime import date

import structlog

from resume_tailor_api.calendar_math import (
    DateParseError,
    YearMonth,
    current_year_month,
    is_present_marker,
    parse_year_month,
)
from resume_tailor_api.config import Settings, get_settings
from resume_tailor_api.model_invoker import ModelInvoker
from resume_tailor_api.models import (
    GeneratedWorkExperience,
    GenerateRequest,
    ResumeData,
    WorkExperienceInput,
)
from resume_tailor_api.prompt_builder import PromptContext, build_enhancement_prompt
from resume_tailor_api.response_validator import (
    StructuredResumeValidator,
    parse_structured_result,
)
from resume_tailor_api.segment_allocator import allocate_segments
from resume_tailor_api.tenure import (
    analyze_gap,
    birth_year_from,
    legal_work_start_floor,
    parse_experience_requirement,
)
from resume_tailor_api.timeline import (
    Origin,
    WorkInterval,
    find_order_violations,
    merge_timeline,
)

logger = structlog.get_logger()


def target_title_for(request: GenerateRequest) -> str:
    job = request.job_data
    if request.language == "english":
        return job.title_english or job.title_chinese
    return job.title_chinese


def to_real_intervals(experiences: list[WorkExperienceInput]) -> list[WorkInterval]:
    """Convert reported experiences into real intervals.

    Experiences with unparseable or inverted dates are logged and left out of
    the timeline; they are still shown to the model as-is.
    """
    intervals = []
    for index, experience in enumerate(experiences):
        try:
            start = parse_year_month(experience.start_date)
            end = None if is_present_marker(experience.end_date) else parse_year_month(experience.end_date)
            intervals.append(WorkInterval(start=start, end=end, origin=Origin.REAL, source_index=index))
        except (DateParseError, ValueError) as e:
            logger.warning(
                "Skipping experience with invalid dates",
                index=index,
                company=experience.company,
                error=str(e),
            )
    return intervals


def map_request_to_resume_data(request: GenerateRequest) -> ResumeData:
    """Base resume record built from the request alone (no generation)."""
    profile = request.resume_profile
    return ResumeData(
        name=profile.name,
        position=target_title_for(request),
        birthday=profile.birthday,
        phone=profile.phone,
        email=profile.email,
        avatar=profile.avatar,
        work_experience=[
            GeneratedWorkExperience(
                company=experience.company,
                position=experience.original_title,
                start_date=experience.start_date,
                end_date=experience.end_date,
            )
            for experience in profile.work_experiences
        ],
    )


class ResumeEnhancer:
    """Builds the reconciled timeline and asks the model to narrate it."""

    def __init__(self, invoker: ModelInvoker, settings: Settings | None = None):
        self._invoker = invoker
        self._settings = settings or get_settings()

    def build_prompt_context(self, request: GenerateRequest, today: YearMonth) -> PromptContext:
        """Run timeline reconciliation and collect everything the prompt needs."""
        settings = self._settings
        profile = request.resume_profile

        birth_year = birth_year_from(profile.birthday, settings.default_birth_year)
        floor = legal_work_start_floor(
            birth_year, settings.legal_work_age, settings.legal_work_start_month
        )

        real = to_real_intervals(profile.work_experiences)
        requirement = parse_experience_requirement(request.job_data.experience)
        gap = analyze_gap(real, requirement, today)

        segments = allocate_segments(
            real,
            gap.supplement_years_needed,
            floor,
            today,
            settings.allocation_policy,
        )
        timeline = merge_timeline(real, [segment.interval for segment in segments])

        logger.info(
            "Timeline reconciled",
            actual_tenure_months=gap.actual_tenure_months,
            minimum_years=requirement.minimum_years,
            supplement_years_needed=gap.supplement_years_needed,
            segments=len(segments),
            floor=str(floor),
        )

        return PromptContext(
            language=request.language,
            target_title=target_title_for(request),
            candidate_name=profile.name,
            instructions=profile.ai_message,
            job=request.job_data,
            experiences=profile.work_experiences,
            floor=floor,
            gap=gap,
            segments=segments,
            timeline=timeline,
        )

    async def enhance(self, request: GenerateRequest, today: date | None = None) -> ResumeData:
        """Generate the enhanced resume.

        Raises:
            ExhaustedCandidates: No candidate model produced a legal response.
        """
        context = self.build_prompt_context(request, current_year_month(today))
        prompt = build_enhancement_prompt(context)

        result = await self._invoker.invoke(
            prompt,
            self._settings.llm_candidate_models,
            StructuredResumeValidator(),
        )
        generated = parse_structured_result(result.text)

        violations = find_order_violations([entry.start_date for entry in generated.work_experience])
        if violations:
            logger.warning(
                "Generated experience list is not newest-first",
                model=result.model,
                out_of_order_indices=violations,
            )

        base = map_request_to_resume_data(request)
        return base.model_copy(
            update={
                # Always the computed title, whatever the model returned
                "position": context.target_title,
                "years_of_experience": generated.years_of_experience,
                "personal_introduction": generated.personal_introduction,
                "professional_skills": generated.professional_skills,
                "work_experience": generated.work_experience,
            }
        )
