"""Structural legality checks for generated resumes.

A response is illegal when it does not parse as the expected JSON object,
when a required field is missing or holds a placeholder the model uses to
dodge the task, or when its shape does not match ``GeneratedResume``.
Narrative quality is not judged here.
"""

import json
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from resume_tailor_api.model_invoker import ValidationFailure
from resume_tailor_api.models import GeneratedResume

REQUIRED_FIELDS = (
    "position",
    "yearsOfExperience",
    "personalIntroduction",
    "professionalSkills",
    "workExperience",
)

# Compared after strip() + lower()
PLACEHOLDER_TOKENS = frozenset({"", "undefined", "null", "nan", "none", "暂无"})


def strip_code_fences(raw_text: str) -> str:
    return raw_text.replace("```json", "").replace("```", "").strip()


def is_placeholder(value: Any, placeholders: Iterable[str] = PLACEHOLDER_TOKENS) -> bool:
    """True if ``value`` is absent, empty or a known evasion token."""
    if value is None:
        return True
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return str(value).strip().lower() in placeholders


def _load_object(raw_text: str) -> dict:
    try:
        data = json.loads(strip_code_fences(raw_text))
    except json.JSONDecodeError as e:
        raise ValidationFailure(f"response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationFailure(f"expected a JSON object, got {type(data).__name__}")
    return data


class StructuredResumeValidator:
    """Validator for the enhancement response."""

    def __init__(
        self,
        required_fields: Iterable[str] = REQUIRED_FIELDS,
        placeholders: Iterable[str] = PLACEHOLDER_TOKENS,
    ):
        self._required_fields = tuple(required_fields)
        self._placeholders = frozenset(token.strip().lower() for token in placeholders)

    def validate(self, raw_text: str) -> None:
        data = _load_object(raw_text)

        for field_name in self._required_fields:
            if is_placeholder(data.get(field_name), self._placeholders):
                raise ValidationFailure(f'field "{field_name}" is missing or a placeholder')

        try:
            GeneratedResume.model_validate(data)
        except ValidationError as e:
            raise ValidationFailure(f"unexpected structure: {e.error_count()} error(s)") from e


def parse_structured_result(raw_text: str) -> GeneratedResume:
    """Parse a response that already passed validation."""
    return GeneratedResume.model_validate(_load_object(raw_text))
