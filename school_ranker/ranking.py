"""Distance ranking and level/sector filtering."""
from __future__ import annotations

import dataclasses
from typing import Iterable, List, Optional, Sequence

from . import config
from .geo import distance_km
from .models import Institution, ReferencePosition


def rank(
    institutions: Iterable[Institution], position: ReferencePosition
) -> List[Institution]:
    """Return copies annotated with distance to ``position``, nearest first.

    Any previous distance is replaced. The sort is stable, so institutions
    at the same distance keep their input order.
    """
    annotated = [
        dataclasses.replace(
            inst,
            distance=distance_km(
                position.latitude, position.longitude, inst.latitude, inst.longitude
            ),
        )
        for inst in institutions
    ]
    annotated.sort(key=distance_sort_key)
    return annotated


def distance_sort_key(inst: Institution) -> float:
    return inst.distance if inst.distance is not None else 0.0


def _contains_any(text: Optional[str], needles: Sequence[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(needle in lowered for needle in needles)


def validate_filters(level: str, sector: str) -> None:
    if level not in config.LEVEL_FILTERS:
        raise ValueError(f"level must be one of: {', '.join(config.LEVEL_FILTERS)}")
    if sector not in config.SECTOR_FILTERS:
        raise ValueError(f"sector must be one of: {', '.join(config.SECTOR_FILTERS)}")


def matches_level(inst: Institution, level: str) -> bool:
    if level == "all":
        return True
    return _contains_any(inst.name, config.LEVEL_MARKERS[level])


def matches_sector(inst: Institution, sector: str) -> bool:
    if sector == "all":
        return True
    return _contains_any(inst.type, config.SECTOR_MARKERS[sector])


def filter_institutions(
    institutions: Iterable[Institution], level: str = "all", sector: str = "all"
) -> List[Institution]:
    validate_filters(level, sector)
    by_level = [inst for inst in institutions if matches_level(inst, level)]
    return [inst for inst in by_level if matches_sector(inst, sector)]
