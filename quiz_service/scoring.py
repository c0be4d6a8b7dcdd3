import math
from dataclasses import dataclass
from typing import Iterable, Protocol


class ScoredResponse(Protocol):
    category: str
    is_correct: bool


@dataclass
class CategoryTally:
    correct: int = 0
    total: int = 0


@dataclass(frozen=True)
class CategoryScore:
    category: str
    score: int      # 0-100
    correct: int
    total: int

    def as_dict(self) -> dict:
        return {"category": self.category, "score": self.score, "correct": self.correct, "total": self.total}


def round_half_up(value: float) -> int:
    # round() is banker's rounding; percentages round .5 upward
    return int(math.floor(value + 0.5))


def normalize_category(category: str) -> str:
    return (category or "").strip().lower()


def aggregate_responses(responses: Iterable[ScoredResponse]) -> dict[str, CategoryTally]:
    tallies: dict[str, CategoryTally] = {}
    for r in responses:
        category = normalize_category(r.category)
        if not category:
            raise ValueError("response category must be a non-empty string")
        tally = tallies.setdefault(category, CategoryTally())
        tally.total += 1
        if r.is_correct:
            tally.correct += 1
    return tallies


def build_profile(responses: Iterable[ScoredResponse]) -> list[CategoryScore]:
    """
    Per-category percentage of correct answers, strongest first.

    Categories without responses never appear; ties are ordered by name so the
    same responses always give the same profile.
    """
    profile = [
        CategoryScore(
            category=category,
            score=round_half_up(t.correct / t.total * 100),
            correct=t.correct,
            total=t.total,
        )
        for category, t in aggregate_responses(responses).items()
        if t.total > 0
    ]
    profile.sort(key=lambda s: (-s.score, s.category))
    return profile


def overall_score(profile: list[CategoryScore]) -> int:
    if not profile:
        return 0
    return round_half_up(sum(s.score for s in profile) / len(profile))


def strongest_category(profile: list[CategoryScore], default: str = "general") -> str:
    return profile[0].category if profile else default
