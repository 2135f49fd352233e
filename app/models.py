"""Pydantic models describing catalog entities and filter values."""

from __future__ import annotations

import re
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ALL = "all"

TAG_RE = re.compile(r"<[^>]*>")


def strip_tags(html: str | None) -> str:
    """Remove markup tags from an HTML fragment."""

    return TAG_RE.sub("", html or "")


class Show(BaseModel):
    """A show returned by the remote catalog; identity is ``id``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    genres: tuple[str, ...] = ()
    language: str | None = None
    rating: float | None = None
    image_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("image_url", "imageUrl"),
        serialization_alias="imageUrl",
    )
    summary_html: str | None = Field(
        default=None,
        validation_alias=AliasChoices("summary_html", "summaryHtml"),
        serialization_alias="summaryHtml",
    )

    @classmethod
    def from_api_payload(cls, data: Mapping[str, Any]) -> "Show":
        """Normalise a remote show record into a :class:`Show`."""

        rating = data.get("rating")
        if isinstance(rating, Mapping):
            rating = rating.get("average")
        image = data.get("image")
        image_url = None
        if isinstance(image, Mapping):
            image_url = image.get("medium") or image.get("original")
        genres = data.get("genres") or []

        return cls.model_validate(
            {
                "id": data.get("id"),
                "name": data.get("name"),
                "genres": tuple(str(genre) for genre in genres),
                "language": data.get("language") or None,
                "rating": rating,
                "image_url": image_url,
                "summary_html": data.get("summary") or None,
            }
        )

    def summary_text(self, limit: int = 180) -> str:
        """Return the plain-text summary, truncated for listing cards."""

        text = strip_tags(self.summary_html)
        if len(text) <= limit:
            return text
        return text[:limit] + "..."

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Episode(BaseModel):
    """Single episode belonging to a show."""

    model_config = ConfigDict(frozen=True)

    id: int
    season: int
    number: int | None = None
    name: str = ""

    @classmethod
    def from_api_payload(cls, data: Mapping[str, Any]) -> "Episode":
        return cls.model_validate(
            {
                "id": data.get("id"),
                "season": data.get("season"),
                "number": data.get("number"),
                "name": data.get("name") or "",
            }
        )

    def code(self) -> str:
        """Return the ``<season>x<number>`` label used in episode lists."""

        number = "?" if self.number is None else str(self.number)
        return f"{self.season}x{number}"


class FilterSpec(BaseModel):
    """Local filters applied on top of the search results."""

    model_config = ConfigDict(frozen=True)

    genre: str = ALL
    language: str = ALL
    min_rating: float = Field(
        default=0.0,
        ge=0,
        validation_alias=AliasChoices("min_rating", "minRating"),
        serialization_alias="minRating",
    )


class FilterUpdate(BaseModel):
    """Partial filter change; omitted fields keep their current value.

    Range checks happen when the update is merged into a :class:`FilterSpec`.
    """

    model_config = ConfigDict(populate_by_name=True)

    genre: str | None = None
    language: str | None = None
    min_rating: float | None = Field(
        default=None,
        validation_alias=AliasChoices("min_rating", "minRating"),
    )


class FilterOptions(BaseModel):
    """Selectable filter values derived from the current results."""

    genres: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
