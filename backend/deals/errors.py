"""Error taxonomy for the deal pipeline and the Result wrapper used at service boundaries."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from shared.models import ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DealError(RuntimeError):
    """Base class for failures the workflow knows how to recover from."""

    kind: ErrorKind = ErrorKind.UNEXPECTED


class ExtractionFailed(DealError):
    """The model call failed or its output could not be decoded."""

    kind = ErrorKind.EXTRACTION_FAILED


class RefinementFailed(DealError):
    """The feedback round could not be applied by the model."""

    kind = ErrorKind.REFINEMENT_FAILED


class SaveFailed(DealError):
    """The venue store rejected or could not complete a write."""

    kind = ErrorKind.SAVE_FAILED


class VenueStoreError(DealError):
    """No venue source could be read."""

    kind = ErrorKind.STORE_UNAVAILABLE


class Unauthorized(DealError):
    """The caller is not a signed-in member."""

    kind = ErrorKind.UNAUTHORIZED


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[DealError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DealError) -> "Result[T]":
        return cls(error=error)


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Result[T]:
    """Run ``fn`` and capture a DealError as a failed Result."""
    try:
        return Result.success(fn(*args, **kwargs))
    except DealError as exc:
        logger.warning("%s: %s", exc.kind.value, exc)
        return Result.failure(exc)
