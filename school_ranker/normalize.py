"""Row normalization into Institution records.

Two source layouts are recognized, tried in this order:

* the official dataset layout (``appellation_officielle`` + ``position``
  columns, with locality/region/sector/IPS extras);
* a generic layout where name, coordinates, address and type are looked
  up among several case variants of common header names.

Rows that fit neither layout, or whose coordinates do not parse, are
dropped without raising.
"""
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Sequence

from . import config
from .models import Institution
from .tabular import Row

logger = logging.getLogger(__name__)


def parse_coordinate(value: Optional[str]) -> Optional[float]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    # float() accepts digit separators ("4_8.8"); coordinates never carry them.
    if "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def first_present_key(row: Row, candidates: Sequence[str]) -> Optional[str]:
    for key in candidates:
        if key in row:
            return key
    return None


def is_official_row(row: Row) -> bool:
    return bool(row.get(config.OFFICIAL_NAME_KEY)) and bool(row.get(config.OFFICIAL_POSITION_KEY))


def normalize_official_row(row: Row, ordinal: int) -> Optional[Institution]:
    if not is_official_row(row):
        return None

    parts = row[config.OFFICIAL_POSITION_KEY].split(",")
    if len(parts) != 2:
        return None
    latitude = parse_coordinate(parts[0])
    longitude = parse_coordinate(parts[1])
    if latitude is None or longitude is None:
        return None

    address_parts = [
        row[key]
        for key in (config.OFFICIAL_LOCALITY_KEY, config.OFFICIAL_REGION_KEY)
        if row.get(key)
    ]
    address = ", ".join(address_parts) if address_parts else None

    type_label = row.get(config.OFFICIAL_SECTOR_KEY) or config.OFFICIAL_DEFAULT_TYPE
    ips = row.get(config.OFFICIAL_IPS_KEY)
    if ips:
        type_label = f"{type_label} (IPS: {ips})"

    return Institution(
        id=ordinal,
        name=row[config.OFFICIAL_NAME_KEY],
        latitude=latitude,
        longitude=longitude,
        external_code=row.get(config.OFFICIAL_CODE_KEY) or None,
        address=address,
        type=type_label,
    )


def normalize_generic_row(row: Row, ordinal: int) -> Optional[Institution]:
    name_key = first_present_key(row, config.GENERIC_NAME_KEYS)
    lat_key = first_present_key(row, config.GENERIC_LAT_KEYS)
    lon_key = first_present_key(row, config.GENERIC_LON_KEYS)
    if name_key is None or lat_key is None or lon_key is None:
        return None

    name = row[name_key]
    if not name:
        return None

    latitude = parse_coordinate(row[lat_key])
    longitude = parse_coordinate(row[lon_key])
    if latitude is None or longitude is None:
        return None

    address_key = first_present_key(row, config.GENERIC_ADDRESS_KEYS)
    type_key = first_present_key(row, config.GENERIC_TYPE_KEYS)
    return Institution(
        id=ordinal,
        name=name,
        latitude=latitude,
        longitude=longitude,
        address=row[address_key] if address_key is not None else None,
        type=row[type_key] if type_key is not None else None,
    )


def normalize_row(row: Row, ordinal: int) -> Optional[Institution]:
    # Layouts never mix: an official row that fails to parse is not retried
    # as a generic one.
    if is_official_row(row):
        return normalize_official_row(row, ordinal)
    return normalize_generic_row(row, ordinal)


def normalize_rows(rows: Iterable[Row]) -> List[Institution]:
    """Normalize rows, numbering accepted institutions densely from 0."""
    institutions: List[Institution] = []
    dropped = 0
    for row in rows:
        institution = normalize_row(row, len(institutions))
        if institution is None:
            dropped += 1
            continue
        institutions.append(institution)
    if dropped:
        logger.info("Dropped %s rows without a usable name or position", dropped)
    return institutions
