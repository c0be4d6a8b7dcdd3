from dataclasses import dataclass

import pytest

from quiz_service.scoring import (
    build_profile,
    overall_score,
    round_half_up,
    strongest_category,
)


@dataclass
class R:
    category: str
    is_correct: bool


def test_profile_example():
    responses = [
        R("logical", True), R("logical", False), R("logical", True),
        R("technical", True), R("technical", True),
    ]
    profile = {s.category: s for s in build_profile(responses)}
    assert profile["logical"].score == 67
    assert (profile["logical"].correct, profile["logical"].total) == (2, 3)
    assert profile["technical"].score == 100


def test_only_answered_categories_appear():
    profile = build_profile([R("technical", True)] * 5)
    assert [s.as_dict() for s in profile] == [{"category": "technical", "score": 100, "correct": 5, "total": 5}]


def test_half_rounds_up():
    assert round_half_up(12.5) == 13
    assert round_half_up(0.5) == 1
    assert round_half_up(66.49) == 66
    # 1 of 8 correct is exactly 12.5%
    profile = build_profile([R("verbal", True)] + [R("verbal", False)] * 7)
    assert profile[0].score == 13


def test_scores_bounded_and_sorted():
    responses = [R("creative", False), R("creative", False), R("verbal", True), R("logical", True), R("logical", False)]
    profile = build_profile(responses)
    assert all(0 <= s.score <= 100 for s in profile)
    assert [s.category for s in profile] == ["verbal", "logical", "creative"]


def test_ties_ordered_by_name():
    profile = build_profile([R("verbal", True), R("logical", True)])
    assert [s.category for s in profile] == ["logical", "verbal"]


def test_category_is_normalized():
    profile = build_profile([R(" Logical", True), R("logical", False)])
    assert len(profile) == 1
    assert profile[0].category == "logical"
    assert profile[0].total == 2


def test_blank_category_rejected():
    with pytest.raises(ValueError):
        build_profile([R("  ", True)])


def test_empty_responses():
    assert build_profile([]) == []
    assert overall_score([]) == 0
    assert strongest_category([]) == "general"


def test_overall_is_mean_of_percentages():
    profile = build_profile([R("logical", True), R("logical", False), R("technical", True)])
    # (50 + 100) / 2
    assert overall_score(profile) == 75
    assert strongest_category(profile) == "technical"
