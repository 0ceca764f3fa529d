"""Command-line runner for the happy hour deal updater workflow."""
from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Dict, List, Optional

from config import get_settings
from deals.errors import VenueStoreError
from deals.services import Services, build_services
from deals.workflow import DealWorkflow, Session
from shared.models import ImageBlob, Location, WorkflowState


def load_image(path: Path) -> ImageBlob:
    media_type, _ = mimetypes.guess_type(path.name)
    return ImageBlob(data=path.read_bytes(), media_type=media_type or "image/jpeg")


def summarize(session: Session) -> Dict[str, object]:
    return {
        "state": session.state.value,
        "mode": session.mode.value if session.mode else None,
        "draft": session.is_draft,
        "warning": session.warning,
        "error": session.error,
        "deal": session.deal.model_dump() if session.deal else None,
        "match": session.match.to_listing() if session.match else None,
        "saved": session.saved.to_listing() if session.saved else None,
    }


def list_venues(services: Services) -> List[dict]:
    try:
        return [venue.to_listing() for venue in services.store.list_venues()]
    except VenueStoreError as exc:
        logging.error("Venue store unavailable: %s", exc)
        return []


def run_session(workflow: DealWorkflow, args: argparse.Namespace) -> Session:
    session = workflow.start()
    location = Location(lat=args.lat, lng=args.lng, source="cli") if args.lat is not None and args.lng is not None else None
    session = workflow.set_input(session, free_text=args.text, restaurant_name=args.name, location=location)
    for path in args.image:
        session = workflow.add_image(session, load_image(path))

    session = workflow.submit(session)
    if session.state != WorkflowState.RESULT:
        return session

    for feedback in args.feedback:
        session = workflow.refine(session, feedback)
    if args.match_id:
        session = workflow.select_match(session, args.match_id)
    elif args.new:
        session = workflow.reject_match(session)
    if args.save:
        session = workflow.confirm(session)
    return session


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract, match and save a happy hour deal")
    parser.add_argument("--text", type=str, default="", help="Deal description as written on the menu or sign")
    parser.add_argument("--name", type=str, default="", help="Restaurant name hint")
    parser.add_argument("--image", type=Path, action="append", default=[], help="Menu photo (repeatable)")
    parser.add_argument("--lat", type=float, default=None, help="Submitter latitude")
    parser.add_argument("--lng", type=float, default=None, help="Submitter longitude")
    parser.add_argument("--feedback", type=str, action="append", default=[], help="Correction round (repeatable)")
    parser.add_argument("--match-id", type=str, default=None, help="Force the match to this venue id")
    parser.add_argument("--new", action="store_true", help="Treat as a new restaurant even if a match is found")
    parser.add_argument("--save", action="store_true", help="Persist the result")
    parser.add_argument("--list-venues", action="store_true", help="Print the current venue list and exit")
    parser.add_argument("--log-level", type=str, default=get_settings().log_level, help="Logging level")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, services: Optional[Services] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    services = services or build_services()

    if args.list_venues:
        print(json.dumps(list_venues(services), indent=2))
        return 0

    if not args.text.strip() and not args.image:
        logging.error("Nothing to extract: pass --text and/or --image")
        return 2

    workflow = services.workflow(listener=lambda s: logging.debug("workflow -> %s", s.state.value))
    session = run_session(workflow, args)
    print(json.dumps(summarize(session), indent=2, default=str))

    if session.error and session.state != WorkflowState.SUCCESS and (args.save or session.state == WorkflowState.CAPTURE):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
