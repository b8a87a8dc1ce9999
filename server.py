"""Ranking API server.

Serves JSON endpoints over a single RankingSession: load a schools file,
set the reference position, change filters, read the ranked results and
download them as CSV.
"""
from __future__ import annotations

import json
import logging
import sys
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from dotenv import load_dotenv

from school_ranker import config
from school_ranker.geo import band_color, band_label, distance_band
from school_ranker.geocoding import build_geocoder
from school_ranker.models import Institution, ReferencePosition
from school_ranker.pipeline import RankerError
from school_ranker.session import RankingSession
from school_ranker.tabular import SAMPLE_CSV

logger = logging.getLogger(__name__)


class RankerServer(HTTPServer):
    def __init__(self, address: Tuple[str, int], session: RankingSession) -> None:
        super().__init__(address, RankerHandler)
        self.session = session


class RankerHandler(BaseHTTPRequestHandler):
    server: RankerServer

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path == "/api/results":
            self._send_json(self._results_payload())
        elif parsed.path == "/api/export.csv":
            self._send_csv(self.server.session.export_csv(), config.EXPORT_FILENAME)
        elif parsed.path == "/api/sample.csv":
            self._send_csv(SAMPLE_CSV, config.SAMPLE_FILENAME)
        elif parsed.path == "/api/geocode":
            self._handle_geocode(parsed.query)
        else:
            self.send_error(404)

    def do_POST(self) -> None:
        if self.path == "/api/load":
            self._handle_load()
        elif self.path == "/api/position":
            self._handle_position()
        elif self.path == "/api/filters":
            self._handle_filters()
        else:
            self.send_error(404)

    def _read_json_body(self) -> Dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        raw = self.rfile.read(length)
        data = json.loads(raw) if raw else {}
        if not isinstance(data, dict):
            raise ValueError("JSON body must be an object")
        return data

    def _send_json(self, data: Dict[str, Any], status: int = 200) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_csv(self, text: str, filename: str) -> None:
        body = text.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/csv; charset=utf-8")
        self.send_header("Content-Disposition", f'attachment; filename="{filename}"')
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error_json(self, exc: Exception) -> None:
        self._send_json({"error": str(exc)}, 400)

    def _results_payload(self) -> Dict[str, Any]:
        session = self.server.session
        return {
            "results": [_result_dict(inst) for inst in session.results],
            "position": session.position.to_dict() if session.position else None,
            "level": session.level,
            "sector": session.sector,
            "summary": session.summary(),
        }

    def _handle_load(self) -> None:
        try:
            payload = self._read_json_body()
            self.server.session.load_text(str(payload.get("text") or ""))
        except (RankerError, ValueError) as exc:
            self._send_error_json(exc)
            return
        self._send_json(self._results_payload())

    def _handle_position(self) -> None:
        session = self.server.session
        try:
            payload = self._read_json_body()
            if payload.get("source") == "device":
                results = session.set_device_position(lambda: _device_coordinates(payload))
            elif payload.get("address"):
                results = session.set_address(str(payload["address"]))
            else:
                results = session.set_position(
                    ReferencePosition.from_coordinates(payload["latitude"], payload["longitude"])
                )
        except KeyError as exc:
            self._send_json({"error": f"Missing field: {exc.args[0]}"}, 400)
            return
        except (RankerError, ValueError, TypeError) as exc:
            self._send_error_json(exc)
            return
        payload_out = self._results_payload()
        payload_out["superseded"] = results is None
        self._send_json(payload_out)

    def _handle_filters(self) -> None:
        try:
            payload = self._read_json_body()
            self.server.session.set_filters(
                level=str(payload.get("level") or "all"),
                sector=str(payload.get("sector") or "all"),
            )
        except ValueError as exc:
            self._send_error_json(exc)
            return
        self._send_json(self._results_payload())

    def _handle_geocode(self, query_string: str) -> None:
        params = parse_qs(query_string)
        query = (params.get("q") or [""])[0].strip()
        if not query:
            self._send_json({"error": "Query parameter 'q' is required."}, 400)
            return
        geocoder = self.server.session.geocoder
        found = geocoder.geocode(query) if geocoder is not None else None
        if found is None:
            self._send_json({"error": "Impossible de géolocaliser cette adresse"}, 404)
            return
        self._send_json(
            {
                "result": {
                    "latitude": found.latitude,
                    "longitude": found.longitude,
                    "display_name": found.display_name,
                }
            }
        )

    def log_message(self, fmt: str, *args: Any) -> None:
        logger.info("%s - %s", self.address_string(), fmt % args)


def _result_dict(inst: Institution) -> Dict[str, Any]:
    data = inst.to_dict()
    if inst.distance is not None:
        data["band"] = distance_band(inst.distance)
        data["band_label"] = band_label(inst.distance)
        data["band_color"] = band_color(inst.distance)
    return data


def _device_coordinates(payload: Dict[str, Any]) -> Tuple[float, float]:
    # The browser reports permission/timeout failures as an "error" field.
    if payload.get("error"):
        raise RuntimeError(str(payload["error"]))
    return float(payload["latitude"]), float(payload["longitude"])


def build_session(data_path: Optional[str] = None) -> RankingSession:
    session = RankingSession(geocoder=build_geocoder())
    data_path = data_path or config.DEFAULT_DATA_PATH
    if data_path:
        try:
            session.load_file(data_path)
            logger.info("Loaded default dataset %s", data_path)
        except (RankerError, OSError) as exc:
            logger.warning("Default dataset %s not loaded: %s", data_path, exc)
    return session


def main() -> int:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    config.load_ranker_config()
    config.apply_env_overrides()
    port = int(sys.argv[1]) if len(sys.argv) > 1 else config.SERVER_PORT

    server = RankerServer(("", port), build_session())
    print(f"Ranking API running at http://localhost:{port}")
    print("Press Ctrl+C to stop.\n")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down.")
    server.server_close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
