"""Pipeline orchestration."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from . import config
from .geo import BAND_LABELS, distance_band, format_distance, is_near
from .geocoding import Geocoder
from .models import Institution, ReferencePosition
from .normalize import normalize_rows
from .ranking import filter_institutions, rank, validate_filters
from .reporting import (
    ensure_dir,
    utc_now_iso,
    write_results_csv,
    write_results_json,
    write_summary,
)
from .tabular import parse_table

logger = logging.getLogger(__name__)


class RankerError(RuntimeError):
    default_message = "Erreur"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class NoDataError(RankerError):
    default_message = "Le fichier CSV ne contient aucune donnée valide"


class NoInstitutionsError(RankerError):
    default_message = (
        "Aucun établissement valide trouvé dans le fichier. Vérifiez le format des données."
    )


class GeocodingError(RankerError):
    default_message = "Impossible de géolocaliser cette adresse"


class GeolocationError(RankerError):
    default_message = "Impossible d'obtenir votre position actuelle"


@dataclass
class PipelineResult:
    institutions: List[Institution]
    results: List[Institution]
    position: Optional[ReferencePosition]
    summary: Dict[str, Any]


def read_text_file(path: str) -> str:
    # utf-8-sig drops the BOM spreadsheet exports like to add.
    with open(path, "r", encoding="utf-8-sig") as f:
        return f.read()


def load_institutions(text: str) -> List[Institution]:
    rows = parse_table(text)
    if not rows:
        raise NoDataError()
    institutions = normalize_rows(rows)
    if not institutions:
        raise NoInstitutionsError()
    logger.info("Loaded %s institutions from %s rows", len(institutions), len(rows))
    return institutions


def resolve_position(
    position: ReferencePosition, geocoder: Optional[Geocoder]
) -> ReferencePosition:
    if not position.needs_geocoding:
        return position
    if geocoder is None:
        raise GeocodingError()
    found = geocoder.geocode(position.address or "")
    if found is None:
        raise GeocodingError()
    return ReferencePosition(
        latitude=found.latitude,
        longitude=found.longitude,
        address=found.display_name,
    )


def run(
    input_path: str,
    position: Optional[ReferencePosition] = None,
    geocoder: Optional[Geocoder] = None,
    level: str = "all",
    sector: str = "all",
    output_dir: str = config.OUTPUT_DIR,
    write_outputs: bool = True,
) -> PipelineResult:
    validate_filters(level, sector)

    logger.info("Stage 1: load %s", input_path)
    institutions = load_institutions(read_text_file(input_path))

    resolved: Optional[ReferencePosition] = None
    ranked = institutions
    if position is not None:
        logger.info("Stage 2: reference position")
        resolved = resolve_position(position, geocoder)
        logger.info("Stage 3: distance ranking")
        ranked = rank(institutions, resolved)
    else:
        logger.info("Stage 2: no reference position, distances skipped")

    logger.info("Stage 4: filters (level=%s, sector=%s)", level, sector)
    results = filter_institutions(ranked, level, sector)

    summary = build_summary(institutions, results, resolved, level, sector)

    if write_outputs:
        logger.info("Stage 5: outputs")
        ensure_dir(output_dir)
        write_results_csv(os.path.join(output_dir, "results.csv"), results)
        write_results_json(os.path.join(output_dir, "results.json"), results)
        write_summary(os.path.join(output_dir, "summary.txt"), render_summary(summary))

    return PipelineResult(
        institutions=institutions,
        results=results,
        position=resolved,
        summary=summary,
    )


def build_summary(
    institutions: List[Institution],
    results: List[Institution],
    position: Optional[ReferencePosition],
    level: str,
    sector: str,
) -> Dict[str, Any]:
    with_distance = [inst for inst in results if inst.distance is not None]
    bands = {band: 0 for band in BAND_LABELS}
    for inst in with_distance:
        bands[distance_band(inst.distance)] += 1
    nearest = with_distance[0] if with_distance else None
    return {
        "generated_at": utc_now_iso(),
        "loaded_count": len(institutions),
        "shown_count": len(results),
        "distance_count": len(with_distance),
        "near_count": sum(1 for inst in with_distance if is_near(inst.distance)),
        "bands": bands,
        "level": level,
        "sector": sector,
        "position": position.to_dict() if position else None,
        "nearest": nearest.to_dict() if nearest else None,
    }


def render_summary(summary: Dict[str, Any]) -> List[str]:
    lines = []
    lines.append(f"Établissements chargés: {summary['loaded_count']}")
    lines.append(f"Établissements affichés: {summary['shown_count']}")
    lines.append(f"Filtres: niveau={summary['level']}, secteur={summary['sector']}")
    position = summary.get("position")
    if not position:
        lines.append("Position définie: Non")
        return lines

    label = position.get("address") or "{latitude}, {longitude}".format(**position)
    lines.append(f"Position définie: {label}")
    lines.append(f"Distances calculées: {summary['distance_count']}")
    lines.append(f"< 5km: {summary['near_count']}")
    for band, count in summary.get("bands", {}).items():
        lines.append(f"  {BAND_LABELS[band]}: {count}")
    nearest = summary.get("nearest")
    if nearest:
        lines.append(
            "Plus proche: {name} ({distance})".format(
                name=nearest["name"], distance=format_distance(nearest["distance"])
            )
        )
    return lines
