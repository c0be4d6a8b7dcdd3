import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from shared.errors import NoResultProduced
from shared.llm import AIGateway
from quiz_service.scoring import CategoryScore, round_half_up

logger = logging.getLogger("recommendation-engine")

EXPECTED_CAREERS = 5


# ----------------------------
# Confidence helpers
# ----------------------------

def clamp_confidence(value: float) -> int:
    return max(0, min(100, int(value)))


def confidence_band(score: int) -> str:
    """Coarse display label for a 0-100 confidence."""
    if score >= 70:
        return "High"
    if score >= 40:
        return "Medium"
    return "Low"


# ----------------------------
# Structured payload validation
# ----------------------------

@dataclass
class ScoredItem:
    title: str
    confidence: int     # 0-100
    reason: str
    item_id: Optional[str] = None


def parse_scored_items(raw: Any, *, title_field: str, kind: str, id_field: Optional[str] = None) -> list[ScoredItem]:
    """
    Validate a list of {title, confidence, reason} objects returned by the model.

    Any malformed entry or a confidence outside 0-100 rejects the whole list,
    so nothing half-valid ever reaches the database.
    """
    if not isinstance(raw, list):
        raise NoResultProduced(f"Invalid {kind} format: {kind} is not an array")

    items: list[ScoredItem] = []
    for idx, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            raise NoResultProduced(f"Invalid {kind} format: item {idx} is not an object")

        title = entry.get(title_field)
        confidence = entry.get("confidence")
        reason = entry.get("reason")
        if (
            not isinstance(title, str) or not title.strip()
            or isinstance(confidence, bool) or not isinstance(confidence, (int, float))
            or not isinstance(reason, str) or not reason.strip()
        ):
            raise NoResultProduced(f"Invalid {kind} format: item {idx} missing required fields")
        if math.isnan(confidence) or confidence < 0 or confidence > 100:
            raise NoResultProduced(f"Invalid {kind} format: item {idx} has invalid confidence score: {confidence}")

        item_id = None
        if id_field:
            item_id = entry.get(id_field)
            if not isinstance(item_id, str) or not item_id:
                raise NoResultProduced(f"Invalid {kind} format: item {idx} missing {id_field}")

        items.append(ScoredItem(
            title=title.strip(),
            confidence=clamp_confidence(round_half_up(confidence)),
            reason=reason.strip(),
            item_id=item_id,
        ))
    return items


# ----------------------------
# Career recommendations
# ----------------------------

CAREER_SYSTEM_PROMPT = """You are a career counselor. Recommend exactly 5 careers that suit a student's aptitude test results.

Reading the scores:
- 80-100%: exceptional strength
- 60-79%: strong ability
- 40-59%: moderate capability
- below 40%: area for development

Matching guidance:
- technical and logical strengths point to engineering, software and IT
- quantitative and analytical strengths point to finance, data science and research
- creative and verbal strengths point to design, writing and marketing
- interpersonal and verbal strengths point to management, HR and teaching

Confidence means fit: 80-100 when the top two strengths align, 60-79 for one or two
relevant strengths, 40-59 for partial alignment. Base every recommendation on the
scores you were given."""

CAREER_TOOL = {
    "type": "object",
    "properties": {
        "recommendations": {
            "type": "array",
            "minItems": EXPECTED_CAREERS,
            "maxItems": EXPECTED_CAREERS,
            "items": {
                "type": "object",
                "properties": {
                    "career": {"type": "string", "description": "Specific career title"},
                    "confidence": {"type": "number", "minimum": 0, "maximum": 100, "description": "Match confidence 0-100"},
                    "reason": {"type": "string", "description": "Short justification citing the aptitude scores"},
                },
                "required": ["career", "confidence", "reason"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["recommendations"],
    "additionalProperties": False,
}


def format_profile(profile: list[CategoryScore]) -> str:
    return ", ".join(f"{s.category}: {s.score}% ({s.correct}/{s.total})" for s in profile)


def build_career_prompt(profile: list[CategoryScore], class_level: str, study_area: str) -> str:
    return (
        f"Student profile - {class_level} level, {study_area} stream\n"
        f"Aptitude scores: {format_profile(profile)}\n\n"
        f"Recommend exactly {EXPECTED_CAREERS} careers ranked by suitability. "
        "Weigh the whole profile, not only the top score."
    )


def request_career_suggestions(
    llm: AIGateway,
    profile: list[CategoryScore],
    class_level: str,
    study_area: str,
) -> list[ScoredItem]:
    args = llm.call_tool(
        system_prompt=CAREER_SYSTEM_PROMPT,
        user_prompt=build_career_prompt(profile, class_level, study_area),
        tool_name="recommend_careers",
        description=f"Return exactly {EXPECTED_CAREERS} career recommendations with confidence scores",
        parameters=CAREER_TOOL,
        failure_message="Failed to generate recommendations",
    )

    suggestions = parse_scored_items(args.get("recommendations"), title_field="career", kind="recommendations")
    if not suggestions:
        raise NoResultProduced("No recommendations produced")
    if len(suggestions) != EXPECTED_CAREERS:
        logger.warning("Expected %d recommendations, got %d", EXPECTED_CAREERS, len(suggestions))
    return suggestions


# ----------------------------
# Career description
# ----------------------------

DESCRIPTION_SYSTEM_PROMPT = (
    "You are a career counselor. Describe a career for a student: overview, key "
    "responsibilities, required skills, education requirements, career prospects "
    "and typical salary range."
)


def request_career_description(llm: AIGateway, career_title: str, category: str) -> str:
    description = llm.complete(
        system_prompt=DESCRIPTION_SYSTEM_PROMPT,
        user_prompt=f"Describe the career: {career_title}. Category: {category}",
        failure_message="Failed to generate description",
    )
    if not description:
        raise NoResultProduced("No description generated")
    return description
