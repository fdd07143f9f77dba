"""Pydantic request/response schemas for the ConcertCritic API.

Concert records themselves are served as the canonical models from
``src.models.concert`` (camelCase, ``None`` fields omitted); this module
holds only the envelopes and request bodies around them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.concert import ConcertSnapshot, Review, ReviewInput

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, bool]


class SubmitReviewRequest(ReviewInput):
    """A review plus an optional snapshot of the reviewed concert.

    The snapshot is required when ``concertId`` refers to a provider concert
    (``tm_…`` / ``setlistfm_…``) that has not been reviewed before; it is
    written to the local catalog under that id.
    """

    concert: ConcertSnapshot | None = None

    def to_review(self) -> ReviewInput:
        return ReviewInput.model_validate(self.model_dump(exclude={"concert"}))


class ReviewListResponse(BaseModel):
    """Reviews stored for one concert, newest first."""

    model_config = _CAMEL

    concert_id: str
    reviews: list[Review] = Field(default_factory=list)
    total: int = 0
