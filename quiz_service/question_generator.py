import logging

from pydantic import ValidationError

from shared.errors import NoResultProduced
from shared.llm import AIGateway, call_with_backoff
from .models import QUIZ_CATEGORIES
from .schemas import QuestionCreateIn

logger = logging.getLogger("quiz-service")

QUESTION_COUNT = 20

QUESTIONS_TOOL = {
    "type": "object",
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "question_text": {"type": "string"},
                    "category": {"type": "string", "enum": list(QUIZ_CATEGORIES)},
                    "options": {
                        "type": "array",
                        "minItems": 4,
                        "maxItems": 4,
                        "items": {
                            "type": "object",
                            "properties": {
                                "text": {"type": "string"},
                                "isCorrect": {"type": "boolean"},
                            },
                            "required": ["text", "isCorrect"],
                            "additionalProperties": False,
                        },
                    },
                },
                "required": ["question_text", "category", "options"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["questions"],
    "additionalProperties": False,
}


def _system_prompt(class_level: str, study_area: str) -> str:
    return (
        "You write aptitude test questions for students at the "
        f"{class_level} level in the {study_area} stream. "
        f"Cover these categories: {', '.join(QUIZ_CATEGORIES)}. "
        "Each question has four options and exactly one correct option. "
        "Test reasoning ability rather than memorised facts."
    )


def generate_questions(llm: AIGateway, class_level: str, study_area: str, max_retries: int = 3) -> list[dict]:
    """
    Ask the model for a fresh batch of questions and return the ones that
    validate, ready for insertion.
    """
    user_prompt = (
        f"Generate {QUESTION_COUNT} aptitude questions for a {class_level} student "
        f"studying {study_area}, spread across all {len(QUIZ_CATEGORIES)} categories."
    )

    args = call_with_backoff(
        lambda: llm.call_tool(
            system_prompt=_system_prompt(class_level, study_area),
            user_prompt=user_prompt,
            tool_name="create_questions",
            description="Return a batch of multiple-choice aptitude questions",
            parameters=QUESTIONS_TOOL,
            failure_message="Failed to generate questions",
        ),
        max_retries=max_retries,
    )

    raw = args.get("questions")
    if not isinstance(raw, list):
        raise NoResultProduced("Invalid AI response format: questions is not an array")

    questions: list[dict] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning("Skipping generated question %d: not an object", idx + 1)
            continue
        try:
            q = QuestionCreateIn(
                question_text=item.get("question_text", ""),
                category=str(item.get("category", "")).lower(),
                options=item.get("options", []),
                target_class_levels=[class_level],
                target_study_areas=[study_area],
            )
        except ValidationError as e:
            logger.warning("Skipping generated question %d: %s", idx + 1, e.errors()[0]["msg"])
            continue
        if sum(1 for o in q.options if o.is_correct) != 1:
            logger.warning("Skipping generated question %d: needs exactly one correct option", idx + 1)
            continue
        data = q.model_dump()
        data["options"] = [{"text": o.text, "isCorrect": o.is_correct} for o in q.options]
        questions.append(data)

    if not questions:
        raise NoResultProduced("No valid questions generated")
    logger.info("Generated %d/%d valid questions", len(questions), len(raw))
    return questions
