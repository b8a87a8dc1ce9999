"""Project configuration.

Loads user-defined settings from ranker_config.json when available,
falling back to sensible defaults. Keep file format constants and
geocoder request shapes centralized here.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- Input format ---

DELIMITER = ";"
QUOTE_CHAR = '"'
STRIPPED_QUOTE_CHARS = "'\""

# Official dataset ("Scheme A") columns
OFFICIAL_NAME_KEY = "appellation_officielle"
OFFICIAL_POSITION_KEY = "position"
OFFICIAL_CODE_KEY = "uai"
OFFICIAL_SECTOR_KEY = "secteur"
OFFICIAL_LOCALITY_KEY = "libelle_commune"
OFFICIAL_REGION_KEY = "libelle_departement"
OFFICIAL_IPS_KEY = "ips"
OFFICIAL_DEFAULT_TYPE = "Établissement"
OFFICIAL_HEADER = (
    "rentree_scolaire;uai;secteur;ips;position;appellation_officielle;"
    "libelle_academie;code_departement;libelle_departement;code_commune;libelle_commune"
)

# Generic ("Scheme B") candidate columns, first match wins
GENERIC_NAME_KEYS: Tuple[str, ...] = (
    "name", "nom", "Name", "Nom", "NAME", "NOM", "etablissement", "ecole", "school",
)
GENERIC_LAT_KEYS: Tuple[str, ...] = ("latitude", "lat", "Latitude", "Lat", "LATITUDE", "LAT")
GENERIC_LON_KEYS: Tuple[str, ...] = (
    "longitude", "lon", "lng", "Longitude", "Lon", "Lng", "LONGITUDE", "LON", "LNG",
)
GENERIC_ADDRESS_KEYS: Tuple[str, ...] = (
    "address", "adresse", "Address", "Adresse", "ADDRESS", "ADRESSE",
)
GENERIC_TYPE_KEYS: Tuple[str, ...] = ("type", "Type", "TYPE", "category", "Category", "CATEGORY")

# --- Distance ---

EARTH_RADIUS_KM = 6371.0
VERY_NEAR_KM = 1.0
NEAR_KM = 5.0
MODERATE_KM = 10.0

# --- Filters ---

LEVEL_FILTERS = ("all", "college", "lycee")
SECTOR_FILTERS = ("all", "public", "private")
LEVEL_MARKERS: Dict[str, Tuple[str, ...]] = {
    "college": ("collège", "college"),
    "lycee": ("lycée", "lycee"),
}
SECTOR_MARKERS: Dict[str, Tuple[str, ...]] = {
    "public": ("public",),
    "private": ("privé", "private"),
}

# --- Reference position ---

DEVICE_POSITION_LABEL = "Position actuelle"

# --- Export ---

EXPORT_HEADER: List[str] = [
    "Rang", "Nom", "UAI", "Distance (km)", "Latitude", "Longitude", "Adresse", "Type",
]
EXPORT_FILENAME = "etablissements-classes-par-distance.csv"
SAMPLE_FILENAME = "exemple-etablissements.csv"

# --- Geocoder ---

GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
GEOCODER_USER_AGENT = "School Distance Calculator"
GEOCODER_RESULT_LIMIT = 1

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 10
HTTP_RETRY_MAX = 1
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- Outputs ---

OUTPUT_DIR = "out"
DEFAULT_DATA_PATH: Optional[str] = None
SERVER_PORT = 8000


def load_ranker_config(path: Optional[str] = None) -> bool:
    """Load settings from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "ranker_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    globals_ref = globals()

    if data.get("geocoder_url"):
        globals_ref["GEOCODER_URL"] = str(data["geocoder_url"])
    if data.get("user_agent"):
        globals_ref["GEOCODER_USER_AGENT"] = str(data["user_agent"])
    if data.get("default_data_path"):
        globals_ref["DEFAULT_DATA_PATH"] = str(data["default_data_path"])
    if data.get("output_dir"):
        globals_ref["OUTPUT_DIR"] = str(data["output_dir"])

    timeout = data.get("http_timeout_seconds")
    if timeout is not None:
        globals_ref["HTTP_TIMEOUT_SECONDS"] = float(timeout)
    retry_max = data.get("http_retry_max")
    if retry_max is not None:
        globals_ref["HTTP_RETRY_MAX"] = max(1, int(retry_max))

    port = data.get("server_port")
    if port is not None:
        globals_ref["SERVER_PORT"] = int(port)

    return True


def apply_env_overrides() -> None:
    """Apply geocoder settings from the environment (after .env is loaded)."""
    globals_ref = globals()
    url = (os.environ.get("GEOCODER_URL") or "").strip()
    if url:
        globals_ref["GEOCODER_URL"] = url
    user_agent = (os.environ.get("GEOCODER_USER_AGENT") or "").strip()
    if user_agent:
        globals_ref["GEOCODER_USER_AGENT"] = user_agent
