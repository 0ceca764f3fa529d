"""Apply free-text human feedback to an extracted deal."""

import json
import logging
from typing import Any, Dict

from shared.models import ExtractedDeal

from .errors import RefinementFailed, attempt
from .extraction import repair
from .llm import DealModel, parse_json_object

logger = logging.getLogger(__name__)

REFINED_BUMP = 0.1
UNCHANGED_BUMP = 0.05
CONFIDENCE_CAP = 0.99

_PROMPT = """Given this extracted restaurant data:
{deal}

And this user feedback: {feedback}

Please update and improve the data based on the feedback. Return ONLY the updated JSON with the same structure, incorporating the user's corrections and suggestions.

DO NOT OUTPUT ANYTHING OTHER THAN VALID JSON."""


def bump_confidence(current: float, step: float) -> float:
    """Raise confidence by ``step``, capped at CONFIDENCE_CAP."""
    return min(current + step, CONFIDENCE_CAP)


def merge_reply(current: ExtractedDeal, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay a (possibly partial) model reply on the current deal.

    Keys the reply omits or sets to null keep their current value; the nested
    ``days`` and ``google_place`` objects are merged key by key.
    """
    merged = current.model_dump()
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **{k: v for k, v in value.items() if v is not None}}
        else:
            merged[key] = value
    return merged


class DealRefiner:
    def __init__(self, model: DealModel):
        self.model = model

    def build_prompt(self, current: ExtractedDeal, feedback: str) -> str:
        return _PROMPT.format(deal=current.model_dump_json(indent=2), feedback=json.dumps(feedback))

    def revise(self, current: ExtractedDeal, feedback: str) -> ExtractedDeal:
        """One model round; raises RefinementFailed on transport or decode errors."""
        try:
            reply = self.model.generate(self.build_prompt(current, feedback))
        except Exception as exc:
            raise RefinementFailed(f"Model request failed: {exc}") from exc

        try:
            payload = merge_reply(current, parse_json_object(reply))
            revised = repair(payload, current.deal_description, current.restaurant_name)
        except ValueError as exc:
            raise RefinementFailed("Model reply was not valid JSON") from exc
        return revised.model_copy(update={"matched_venue_id": current.matched_venue_id})

    @staticmethod
    def accept(current: ExtractedDeal, revised: ExtractedDeal) -> ExtractedDeal:
        """Take the revision, replacing the model's confidence with a fixed bump."""
        return revised.model_copy(update={"confidence": bump_confidence(current.confidence, REFINED_BUMP)})

    @staticmethod
    def keep(current: ExtractedDeal) -> ExtractedDeal:
        """Acknowledge feedback the model could not apply."""
        return current.model_copy(update={"confidence": bump_confidence(current.confidence, UNCHANGED_BUMP)})

    def refine(self, current: ExtractedDeal, feedback: str) -> ExtractedDeal:
        """Revise ``current`` from ``feedback``; always returns forward progress.

        The model's own confidence is ignored. A successful round adds
        REFINED_BUMP; a failed one keeps the deal and adds UNCHANGED_BUMP.
        """
        if not (feedback or "").strip():
            raise ValueError("Feedback must not be empty")

        result = attempt(self.revise, current, feedback.strip())
        if not result.ok:
            logger.info("Feedback not applied to %r; keeping current values", current.restaurant_name)
            return self.keep(current)
        return self.accept(current, result.value)
