import json

import pytest

from deals.errors import RefinementFailed
from deals.refinement import CONFIDENCE_CAP, DealRefiner, bump_confidence
from shared.models import DaySchedule, ExtractedDeal
from tests.conftest import FakeModel


@pytest.fixture
def current():
    return ExtractedDeal(
        restaurant_name="Test Bar",
        deal_description="$5 beers 4-6pm",
        days=DaySchedule.weekdays(),
        confidence=0.75,
        matched_venue_id="12",
    )


def test_successful_round_adds_fixed_bump(current):
    revised = current.model_dump()
    revised.update(deal_description="$5 beers 4-7pm", confidence=0.2, matched_venue_id=None)
    refiner = DealRefiner(FakeModel("```json\n" + json.dumps(revised) + "\n```"))

    result = refiner.refine(current, "it runs until 7")

    assert result.deal_description == "$5 beers 4-7pm"
    assert result.confidence == pytest.approx(0.85)
    assert result.matched_venue_id == "12"


def test_prompt_carries_deal_and_feedback(current):
    model = FakeModel(current.model_dump_json())
    DealRefiner(model).refine(current, "  closed on Fridays  ")

    prompt, images = model.calls[0]
    assert '"restaurant_name": "Test Bar"' in prompt
    assert '"closed on Fridays"' in prompt
    assert images == []


@pytest.mark.parametrize("reply", [RuntimeError("quota exceeded"), "no json here"])
def test_failed_round_keeps_deal_with_small_bump(current, reply):
    result = DealRefiner(FakeModel(reply)).refine(current, "it runs until 7")

    assert result.deal_description == current.deal_description
    assert result.confidence == pytest.approx(0.80)


def test_revise_raises_refinement_failed(current):
    with pytest.raises(RefinementFailed):
        DealRefiner(FakeModel("[]")).revise(current, "fix it")


def test_empty_feedback_never_calls_model(current):
    model = FakeModel()
    with pytest.raises(ValueError):
        DealRefiner(model).refine(current, "   ")
    assert model.calls == []


def test_confidence_bump_is_capped():
    assert bump_confidence(0.95, 0.1) == CONFIDENCE_CAP
    assert bump_confidence(0.995, 0.1) == CONFIDENCE_CAP
    assert bump_confidence(1.0, 0.05) == CONFIDENCE_CAP
    assert bump_confidence(0.0, 0.05) == pytest.approx(0.05)

    current = 0.5
    for _ in range(10):
        current = bump_confidence(current, 0.1)
    assert current == CONFIDENCE_CAP


@pytest.mark.parametrize("reply", [None, RuntimeError("timeout")])
def test_refine_from_full_confidence_settles_at_cap(current, reply):
    start = current.model_copy(update={"confidence": 1.0})
    model = FakeModel(reply if reply is not None else start.model_dump_json())

    assert DealRefiner(model).refine(start, "double-check the hours").confidence == CONFIDENCE_CAP


def test_partial_reply_keeps_untouched_fields(current):
    model = FakeModel(json.dumps({"deal_description": "$5 beers 4-7pm", "days": {"friday": False}, "google_place": None}))
    result = DealRefiner(model).refine(current, "not on Fridays, until 7")

    assert result.restaurant_name == "Test Bar"
    assert result.deal_description == "$5 beers 4-7pm"
    assert result.days.monday is True
    assert result.days.friday is False
    assert result.matched_venue_id == "12"
    assert result.confidence == pytest.approx(0.85)
