"""
Deal Updater Workflow
=====================
State machine behind the member data-entry tool:

    capture -> processing -> result (comparison | new_entry) -> success -> capture

Every action takes a ``Session`` and returns a new one; nothing is mutated in
place. Actions that are not allowed in the current state (a disabled button in
the UI) return the session unchanged.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple, Union

from shared.models import ErrorKind, ExtractedDeal, ImageBlob, Location, ResultMode, Venue, Weekday, WorkflowState

from .errors import DealError, Result, attempt
from .extraction import DealExtractor, draft_deal
from .matching import MatchCandidate, match, search_venues
from .persistence import DealPersistence
from .refinement import DealRefiner
from .store import VenueStore

logger = logging.getLogger(__name__)

SUCCESS_DISPLAY_SECONDS = 2.5
DRAFT_WARNING = "Extraction failed, rough draft substituted. Please check every field."

_EDITABLE_FIELDS = {"restaurant_name", "deal_description"}


@dataclass(frozen=True)
class Session:
    state: WorkflowState = WorkflowState.CAPTURE

    # capture
    restaurant_name: str = ""
    free_text: str = ""
    images: Tuple[ImageBlob, ...] = ()
    location: Optional[Location] = None

    # result
    deal: Optional[ExtractedDeal] = None
    match: Optional[Venue] = None
    venues: Tuple[Venue, ...] = ()
    feedback: str = ""
    search_query: str = ""
    search_results: Tuple[Venue, ...] = ()
    is_draft: bool = False

    # success
    saved: Optional[Venue] = None
    success_at: Optional[float] = None

    in_flight: bool = False
    error: Optional[str] = None
    warning: Optional[str] = None
    rounds: int = 0

    @property
    def can_submit(self) -> bool:
        has_input = bool(self.images) or bool(self.free_text.strip())
        return self.state == WorkflowState.CAPTURE and has_input and not self.in_flight

    @property
    def mode(self) -> Optional[ResultMode]:
        if self.state != WorkflowState.RESULT:
            return None
        return ResultMode.COMPARISON if self.match is not None else ResultMode.NEW_ENTRY

    @property
    def candidate(self) -> Optional[MatchCandidate]:
        return MatchCandidate(self.deal, self.match) if self.deal is not None else None


class DealWorkflow:
    """Drives extraction, matching, refinement and persistence for one session."""

    def __init__(
        self,
        extractor: DealExtractor,
        refiner: DealRefiner,
        persistence: DealPersistence,
        store: VenueStore,
        matcher: Callable = match,
        use_draft: bool = True,
        forward_venues: bool = True,
        region_city: str = "Atlanta",
        clock: Callable[[], float] = time.monotonic,
        listener: Optional[Callable[[Session], None]] = None,
    ):
        self.extractor = extractor
        self.refiner = refiner
        self.persistence = persistence
        self.store = store
        self.matcher = matcher
        self.use_draft = use_draft
        self.forward_venues = forward_venues
        self.region_city = region_city
        self.clock = clock
        self.listener = listener

    def _emit(self, session: Session) -> Session:
        if self.listener is not None:
            self.listener(session)
        return session

    def _recover(self, session: Session, result: Result) -> Session:
        """Look up the recovery for a failed service call by error kind."""
        handler = _RECOVERY.get(result.kind, DealWorkflow._recover_unexpected)
        return self._emit(handler(self, session, result.error))

    # =========================================================================
    # CAPTURE
    # =========================================================================

    def start(self) -> Session:
        return self._emit(Session())

    def set_input(
        self,
        session: Session,
        free_text: Optional[str] = None,
        restaurant_name: Optional[str] = None,
        location: Optional[Location] = None,
    ) -> Session:
        if session.state != WorkflowState.CAPTURE:
            return session
        changes: Dict[str, object] = {}
        if free_text is not None:
            changes["free_text"] = free_text
        if restaurant_name is not None:
            changes["restaurant_name"] = restaurant_name
        if location is not None:
            changes["location"] = location
        return replace(session, **changes)

    def add_image(self, session: Session, image: ImageBlob) -> Session:
        if session.state != WorkflowState.CAPTURE:
            return session
        return replace(session, images=session.images + (image,))

    def remove_image(self, session: Session, index: int) -> Session:
        if session.state != WorkflowState.CAPTURE or not 0 <= index < len(session.images):
            return session
        return replace(session, images=session.images[:index] + session.images[index + 1:])

    # =========================================================================
    # PROCESSING
    # =========================================================================

    def submit(self, session: Session) -> Session:
        """Extract, then match; lands in RESULT (or back in CAPTURE on hard failure)."""
        if not session.can_submit:
            return session

        processing = self._emit(
            replace(session, state=WorkflowState.PROCESSING, in_flight=True, error=None, warning=None)
        )

        listing = attempt(self.store.list_venues)
        venues = tuple(listing.value) if listing.ok else ()

        extracted = attempt(
            self.extractor.extract,
            list(session.images),
            session.free_text,
            session.restaurant_name,
            venues=list(venues) if listing.ok and self.forward_venues else None,
            location=session.location,
        )
        processing = replace(processing, venues=venues)
        if not extracted.ok:
            return self._recover(processing, extracted)
        return self._emit(self._enter_result(processing, extracted.value))

    def _enter_result(self, session: Session, deal: ExtractedDeal, is_draft: bool = False, warning: Optional[str] = None) -> Session:
        venue = self.matcher(deal, session.venues, session.location)
        if venue is not None:
            logger.info("Matched %r to venue %s", deal.restaurant_name, venue.id)
        return replace(
            session,
            state=WorkflowState.RESULT,
            in_flight=False,
            deal=deal,
            match=venue,
            is_draft=is_draft,
            warning=warning,
        )

    def _recover_extraction(self, session: Session, error: DealError) -> Session:
        if self.use_draft:
            deal = draft_deal(session.free_text, session.restaurant_name, self.region_city)
            drafted = self._enter_result(session, deal, is_draft=True, warning=DRAFT_WARNING)
            return replace(drafted, error=str(error))
        return replace(session, state=WorkflowState.CAPTURE, in_flight=False, error=str(error))

    # =========================================================================
    # RESULT
    # =========================================================================

    def edit(self, session: Session, **fields: str) -> Session:
        """Direct edits: restaurant_name, deal_description and/or neighborhood."""
        if session.state != WorkflowState.RESULT or session.deal is None:
            return session
        unknown = set(fields) - _EDITABLE_FIELDS - {"neighborhood"}
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")

        updates: Dict[str, object] = {key: value for key, value in fields.items() if key in _EDITABLE_FIELDS}
        if "neighborhood" in fields:
            updates["google_place"] = session.deal.google_place.model_copy(update={"neighborhood": fields["neighborhood"]})
        return replace(session, deal=session.deal.model_copy(update=updates))

    def toggle_day(self, session: Session, day: Union[Weekday, str]) -> Session:
        if session.state != WorkflowState.RESULT or session.deal is None:
            return session
        days = session.deal.days.toggle(Weekday(day))
        return replace(session, deal=session.deal.model_copy(update={"days": days}))

    def set_feedback(self, session: Session, feedback: str) -> Session:
        return replace(session, feedback=feedback)

    def refine(self, session: Session, feedback: Optional[str] = None) -> Session:
        """One feedback round; the state stays RESULT and the feedback box is cleared."""
        text = (session.feedback if feedback is None else feedback).strip()
        if session.state != WorkflowState.RESULT or session.deal is None or session.in_flight or not text:
            return session

        revised = attempt(self.refiner.revise, session.deal, text)
        session = replace(session, feedback="", rounds=session.rounds + 1)
        if not revised.ok:
            return self._recover(session, revised)
        return self._emit(replace(session, deal=self.refiner.accept(session.deal, revised.value)))

    def _recover_refinement(self, session: Session, error: DealError) -> Session:
        return replace(session, deal=self.refiner.keep(session.deal))

    def search(self, session: Session, query: str) -> Session:
        if session.state != WorkflowState.RESULT:
            return session
        results = tuple(search_venues(session.venues, query))
        return replace(session, search_query=query, search_results=results)

    def select_match(self, session: Session, venue_id: str) -> Session:
        """Operator picks a different existing venue."""
        if session.state != WorkflowState.RESULT:
            return session
        venue = next((v for v in session.venues if v.id == str(venue_id)), None)
        if venue is None:
            raise ValueError(f"Unknown venue id: {venue_id}")
        return self._emit(replace(session, match=venue, search_query="", search_results=()))

    def reject_match(self, session: Session) -> Session:
        """Operator declares this a new restaurant."""
        if session.state != WorkflowState.RESULT:
            return session
        return self._emit(replace(session, match=None))

    def confirm(self, session: Session) -> Session:
        """Persist the deal; SUCCESS on write, RESULT with an error otherwise."""
        if session.state != WorkflowState.RESULT or session.deal is None or session.in_flight:
            return session

        saved = attempt(
            self.persistence.save,
            session.deal,
            session.match.id if session.match is not None else None,
        )
        if not saved.ok:
            return self._recover(session, saved)
        return self._emit(
            replace(session, state=WorkflowState.SUCCESS, saved=saved.value, success_at=self.clock(), error=None)
        )

    def _recover_save(self, session: Session, error: DealError) -> Session:
        return replace(session, error=str(error))

    def _recover_unexpected(self, session: Session, error: DealError) -> Session:
        """Any other failure: stay on the current screen with the error shown."""
        state = WorkflowState.CAPTURE if session.state == WorkflowState.PROCESSING else session.state
        return replace(session, state=state, in_flight=False, error=str(error))

    # =========================================================================
    # SUCCESS / CANCEL
    # =========================================================================

    def tick(self, session: Session, now: Optional[float] = None) -> Session:
        """Return to a fresh capture once the success screen has been shown long enough."""
        if session.state != WorkflowState.SUCCESS or session.success_at is None:
            return session
        now = self.clock() if now is None else now
        if now - session.success_at >= SUCCESS_DISPLAY_SECONDS:
            return self.reset(session)
        return session

    def reset(self, session: Optional[Session] = None) -> Session:
        """Discard everything; nothing captured so far is saved."""
        return self._emit(Session())

    def back(self, session: Session) -> Session:
        """Pop one view: close an open search, otherwise discard everything like reset."""
        if session.state == WorkflowState.RESULT and (session.search_query or session.search_results):
            return self._emit(replace(session, search_query="", search_results=()))
        return self.reset(session)


_RECOVERY: Dict[ErrorKind, Callable[[DealWorkflow, Session, DealError], Session]] = {
    ErrorKind.EXTRACTION_FAILED: DealWorkflow._recover_extraction,
    ErrorKind.REFINEMENT_FAILED: DealWorkflow._recover_refinement,
    ErrorKind.SAVE_FAILED: DealWorkflow._recover_save,
}
