"""Prompt rendering for resume enhancement.

One template per supported language. The prompt language and the requested
output language always match the request's language selector.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from resume_tailor_api.calendar_math import YearMonth, format_year_month
from resume_tailor_api.models import JobData, Language, WorkExperienceInput
from resume_tailor_api.segment_allocator import SupplementSegment
from resume_tailor_api.tenure import GapAnalysis
from resume_tailor_api.timeline import Origin, WorkInterval


@dataclass(frozen=True)
class PromptContext:
    language: Language
    target_title: str
    candidate_name: str
    instructions: str
    job: JobData
    experiences: Sequence[WorkExperienceInput]
    floor: YearMonth
    gap: GapAnalysis
    segments: Sequence[SupplementSegment]
    timeline: Sequence[WorkInterval]


# =============================================================================
# Shared helpers
# =============================================================================


def format_tenure(months: int, language: Language) -> str:
    """``27`` -> ``"2年3个月"`` / ``"2 years 3 months"``."""
    years, remainder = divmod(months, 12)
    if language == "english":
        text = f"{years} year{'s' if years != 1 else ''}"
        if remainder:
            text += f" {remainder} month{'s' if remainder != 1 else ''}"
        return text
    return f"{years}年{remainder}个月" if remainder else f"{years}年"


def _job_description(context: PromptContext) -> str:
    if context.language == "english" and context.job.description_english:
        return context.job.description_english
    return context.job.description_chinese


def _timeline_lines(context: PromptContext, real_label: str, synthetic_label: str, present: str) -> str:
    lines = []
    for position, interval in enumerate(context.timeline, start=1):
        if interval.origin is Origin.REAL and interval.source_index is not None:
            experience = context.experiences[interval.source_index]
            lines.append(
                f"{position}. [{real_label}] {experience.company} - "
                f"{experience.start_date} ~ {experience.end_date}"
            )
        else:
            lines.append(
                f"{position}. [{synthetic_label}] - "
                f"{format_year_month(interval.start)} ~ {interval.describe_end(present)}"
            )
    return "\n".join(lines)


def _experience_blocks(context: PromptContext, labels: tuple[str, str, str, str, str]) -> str:
    heading, company, title, direction, period = labels
    blocks = []
    for index, experience in enumerate(context.experiences, start=1):
        blocks.append(
            f"{heading} {index}:\n"
            f"- {company}: {experience.company}\n"
            f"- {title}: {experience.original_title}\n"
            f"- {direction}: {experience.business_direction}\n"
            f"- {period}: {experience.start_date} ~ {experience.end_date}"
        )
    return "\n\n".join(blocks)


def _supplement_months(context: PromptContext) -> int:
    return sum(segment.months for segment in context.segments)


def _target_years(context: PromptContext) -> int:
    """Real tenure plus the tenure actually placed, in whole years."""
    return (context.gap.actual_tenure_months + _supplement_months(context)) // 12


# =============================================================================
# Chinese
# =============================================================================


def _build_chinese(context: PromptContext) -> str:
    title = context.target_title
    gap = context.gap
    requirement = gap.requirement

    if context.segments:
        segment_text = "\n\n".join(
            f"补充经历 {index}:\n"
            f"- 时间段: {format_year_month(segment.start)} 至 {format_year_month(segment.end)} "
            f"({format_tenure(segment.months, 'chinese')})\n"
            f'- 公司名称: 根据目标岗位"{title}"的行业特点生成一个自然、真实的工作室名称，不要夸张或带有 AI 感\n'
            f"- 职位名称: 与目标岗位一致或相关，符合该时间段的职级水平（早期用初级职位）\n"
            f"- 工作内容: 围绕目标岗位的核心职责，符合 {segment.years} 年经验对应的水平"
            for index, segment in enumerate(context.segments, start=1)
        )
        supplement_section = f"""**实际工作年限不足，必须补充工作经历。**
需要补充的总年限: {format_tenure(_supplement_months(context), "chinese")}

补充工作经历的时间段（必须严格按照以下时间段生成，不能修改）:
{segment_text}

**所有工作经历的时间线（按时间倒序，最新的在最上面）:**
{_timeline_lines(context, "现有经历", "补充经历", "至今")}

补充规则:
1. 补充经历必须插入到上述时间线的对应位置，而不是简单地放在最后
2. 补充经历与现有经历在时间上不能重叠
3. workExperience 数组必须严格按照上述时间线顺序输出"""
        ordering_task = "严格按照上面时间线的顺序输出所有工作经历（最新的在最上面，最老的在最下面）。"
    elif gap.needs_supplement:
        # Floor left no room for any segment
        supplement_section = "实际工作年限不足，但受最早工作日限制无法补充。不要添加任何新的工作经历。"
        ordering_task = "输出重塑后的现有工作经历，按时间倒序排列（最新的在最上面）。"
    else:
        supplement_section = "实际工作年限已满足要求，无需补充工作经历。"
        ordering_task = "输出重塑后的现有工作经历，按时间倒序排列（最新的在最上面）。"

    return f"""你是一位顶级的简历包装专家。你的核心原则是：【一切以目标岗位为准】。

### 核心指令 (必须严格执行)
1. **身份锁死**：生成的简历职位名称 (`position`) 必须且只能是："{title}"。
2. **移除无关背景**：如果用户原始背景与"{title}"不相符，在职责描述中移除不相关的技术栈或业务痕迹。
3. **经历重塑**：保持公司名称和时间段不变，根据"业务方向"将职位名和职责重写为与"{title}"匹配的角色。
4. **职级命名原则**：
   - 累计年限 < 3年：禁止出现"高级"、"资深"。
   - 累计年限 3-7年：推荐使用"高级"，禁止使用"资深"。
   - 累计年限 7年以上：可使用"高级"，慎重使用"资深"。

### 1. 目标岗位信息
- 岗位名称: {title}
- 岗位描述: {_job_description(context)}
- 经验要求: {context.job.experience} (最低要求: {requirement.minimum_years}年)

### 2. 用户背景
- 姓名: {context.candidate_name}
- 用户指令: {context.instructions}
- 最早工作日限制: {format_year_month(context.floor)} (不能早于此日期)

### 3. 工作经历分析
- 实际工作年限: {format_tenure(gap.actual_tenure_months, "chinese")} ({gap.actual_tenure_months}个月)
- 岗位要求年限: 最低 {requirement.minimum_years}年
- 是否需要补充: {"是" if context.segments else "否"}

### 4. 工作经历补充规则
{supplement_section}

### 5. 现有工作经历 (需根据业务方向进行重塑)
{_experience_blocks(context, ("经历", "公司", "原始职位", "业务方向", "时间"))}

### 6. 任务
1. 工作年限: `yearsOfExperience` 输出 {_target_years(context)}。
2. 工作经历排序: {ordering_task}
3. 个人简介: 表现出是"{title}"领域的专业人士。
4. 专业技能: 最多 4 个大类，每类 3-4 点。
5. 工作职责: 每段经历 4-6 条，使用行业术语。
6. 排版: 3-4 处 <b> 加粗，3-4 处 <u> 下划线。

### 7. 输出格式 (纯 JSON，不要输出任何其他内容)
{{
  "position": "{title}",
  "yearsOfExperience": {_target_years(context)},
  "personalIntroduction": "...",
  "professionalSkills": [{{ "title": "类别", "items": ["..."] }}],
  "workExperience": [
    {{ "company": "...", "position": "适配后的新职位", "startDate": "YYYY-MM", "endDate": "YYYY-MM 或 至今", "responsibilities": ["..."] }}
  ]
}}

输出语言: Chinese
"""


# =============================================================================
# English
# =============================================================================


def _build_english(context: PromptContext) -> str:
    title = context.target_title
    gap = context.gap
    requirement = gap.requirement

    if context.segments:
        segment_text = "\n\n".join(
            f"Supplementary experience {index}:\n"
            f"- Period: {format_year_month(segment.start)} to {format_year_month(segment.end)} "
            f"({format_tenure(segment.months, 'english')})\n"
            f'- Company: a natural, realistic studio name fitting the "{title}" industry, '
            f"nothing exaggerated or artificial-sounding\n"
            f"- Title: the target title or a related one, at a seniority matching this period "
            f"(junior for early periods)\n"
            f"- Responsibilities: core duties of the target role at the level of "
            f"{segment.years} year(s) of experience"
            for index, segment in enumerate(context.segments, start=1)
        )
        supplement_section = f"""**Actual experience is below the requirement; supplementary experience is required.**
Total supplementary experience: {format_tenure(_supplement_months(context), "english")}

Supplementary periods (use exactly these periods, do not change them):
{segment_text}

**Complete timeline (newest first):**
{_timeline_lines(context, "Existing", "Supplementary", "present")}

Rules:
1. Place each supplementary experience at its position in the timeline above, not at the end
2. No experience may overlap another in time
3. The workExperience array must follow the timeline order exactly"""
        ordering_task = "Output every experience in the exact order of the timeline above (newest first, oldest last)."
    elif gap.needs_supplement:
        supplement_section = (
            "Actual experience is below the requirement, but the earliest possible start of work "
            "leaves no room for supplementary experience. Do not add any experience."
        )
        ordering_task = "Output the rewritten existing experiences, newest first."
    else:
        supplement_section = "Actual experience meets the requirement; do not add any experience."
        ordering_task = "Output the rewritten existing experiences, newest first."

    return f"""You are a top resume writer. Your guiding principle: everything serves the target role.

### Core directives (mandatory)
1. **Locked title**: the resume `position` must be exactly "{title}".
2. **Remove unrelated background**: if the user's background does not match "{title}", drop unrelated technologies and business details from the responsibilities.
3. **Reshape experience**: keep company names and periods unchanged; rewrite titles and duties, guided by each business direction, into roles matching "{title}".
4. **Seniority naming**:
   - Total experience < 3 years: never use "Senior" or "Principal".
   - 3-7 years: "Senior" is preferred, never "Principal".
   - 7+ years: "Senior" is fine, use "Principal" or "Staff" sparingly.

### 1. Target role
- Title: {title}
- Description: {_job_description(context)}
- Experience requirement: {context.job.experience} (minimum: {requirement.minimum_years} years)

### 2. Candidate
- Name: {context.candidate_name}
- Instructions: {context.instructions}
- Earliest possible start of work: {format_year_month(context.floor)} (nothing may start earlier)

### 3. Experience analysis
- Actual experience: {format_tenure(gap.actual_tenure_months, "english")} ({gap.actual_tenure_months} months)
- Required: at least {requirement.minimum_years} years
- Supplement needed: {"yes" if context.segments else "no"}

### 4. Supplementary experience
{supplement_section}

### 5. Existing experience (reshape according to business direction)
{_experience_blocks(context, ("Experience", "Company", "Original title", "Business direction", "Period"))}

### 6. Tasks
1. Years of experience: output `yearsOfExperience` as {_target_years(context)}.
2. Ordering: {ordering_task}
3. Personal introduction: present the candidate as a professional in "{title}".
4. Professional skills: at most 4 categories of 3-4 items each.
5. Responsibilities: 4-6 per experience, using industry terminology.
6. Formatting: 3-4 <b> highlights and 3-4 <u> underlines.

### 7. Output format (JSON only, nothing else)
{{
  "position": "{title}",
  "yearsOfExperience": {_target_years(context)},
  "personalIntroduction": "...",
  "professionalSkills": [{{ "title": "Category", "items": ["..."] }}],
  "workExperience": [
    {{ "company": "...", "position": "Adapted title", "startDate": "YYYY-MM", "endDate": "YYYY-MM or present", "responsibilities": ["..."] }}
  ]
}}

Output language: English
"""


def build_enhancement_prompt(context: PromptContext) -> str:
    if context.language == "english":
        return _build_english(context)
    return _build_chinese(context)
