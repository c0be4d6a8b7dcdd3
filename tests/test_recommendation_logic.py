import pytest

from shared.errors import NoResultProduced
from recommendation_engine.recommendation_logic import (
    clamp_confidence,
    confidence_band,
    parse_scored_items,
)
from recommendation_engine.schemas import sanitize_prompt_text


def _item(confidence, career="Software Engineer", reason="Strong technical score"):
    return {"career": career, "confidence": confidence, "reason": reason}


def test_valid_items_parsed():
    items = parse_scored_items([_item(88), _item(61.5, career="Data Analyst")], title_field="career", kind="recommendations")
    assert [(i.title, i.confidence) for i in items] == [("Software Engineer", 88), ("Data Analyst", 62)]


@pytest.mark.parametrize("confidence", [150, -5])
def test_out_of_range_confidence_rejected(confidence):
    with pytest.raises(NoResultProduced) as exc:
        parse_scored_items([_item(80), _item(confidence)], title_field="career", kind="recommendations")
    assert "item 2 has invalid confidence score" in str(exc.value)


def test_missing_fields_rejected():
    with pytest.raises(NoResultProduced):
        parse_scored_items([{"career": "Writer", "confidence": 70}], title_field="career", kind="recommendations")
    with pytest.raises(NoResultProduced):
        parse_scored_items([_item(True)], title_field="career", kind="recommendations")


def test_not_a_list_rejected():
    with pytest.raises(NoResultProduced):
        parse_scored_items({"career": "Writer"}, title_field="career", kind="recommendations")


def test_id_field_required_when_asked():
    with pytest.raises(NoResultProduced):
        parse_scored_items(
            [{"title": "A college", "confidence": 50, "reason": "near"}],
            title_field="title", kind="colleges", id_field="id",
        )


def test_bands():
    assert confidence_band(100) == "High"
    assert confidence_band(70) == "High"
    assert confidence_band(69) == "Medium"
    assert confidence_band(40) == "Medium"
    assert confidence_band(39) == "Low"
    assert confidence_band(0) == "Low"


def test_clamp():
    assert clamp_confidence(120) == 100
    assert clamp_confidence(-3) == 0
    assert clamp_confidence(55) == 55


def test_sanitize_prompt_text():
    assert sanitize_prompt_text("  Data <Scientist>; DROP ") == "Data Scientist DROP"
    assert sanitize_prompt_text("Full-Stack Dev") == "Full-Stack Dev"
