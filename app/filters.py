"""Local filtering of search results."""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import ALL, FilterOptions, FilterSpec, FilterUpdate, Show


def derive_options(results: Iterable[Show]) -> FilterOptions:
    """Return the sorted, de-duplicated genres and languages present in ``results``."""

    genres: set[str] = set()
    languages: set[str] = set()
    for show in results:
        genres.update(show.genres)
        if show.language:
            languages.add(show.language)
    return FilterOptions(genres=sorted(genres), languages=sorted(languages))


def matches(show: Show, spec: FilterSpec) -> bool:
    if spec.genre != ALL and spec.genre not in show.genres:
        return False
    if spec.language != ALL and show.language != spec.language:
        return False
    return (show.rating or 0.0) >= spec.min_rating


def apply_filters(results: Sequence[Show], spec: FilterSpec) -> list[Show]:
    """Return the shows passing ``spec`` in their original order."""

    return [show for show in results if matches(show, spec)]


def merge_filters(spec: FilterSpec, update: FilterUpdate) -> FilterSpec:
    """Return a new spec with the fields set on ``update`` replaced.

    Raises ``ValueError`` for a negative minimum rating.
    """

    if update.min_rating is not None and update.min_rating < 0:
        raise ValueError("min_rating must not be negative")
    return FilterSpec(
        genre=spec.genre if update.genre is None else update.genre,
        language=spec.language if update.language is None else update.language,
        min_rating=spec.min_rating if update.min_rating is None else update.min_rating,
    )
