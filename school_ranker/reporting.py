"""Output reporting helpers."""
from __future__ import annotations

import csv
import io
import json
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, List, Optional, TextIO

from . import config
from .models import Institution


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except (AttributeError, OSError):
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def atomic_write_text(path: str, text: str) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
        f.write(text)


def build_export_row(rank_number: int, inst: Institution) -> List[Any]:
    return [
        rank_number,
        inst.name,
        inst.external_code or "",
        inst.distance if inst.distance is not None else 0,
        inst.latitude,
        inst.longitude,
        inst.address or "",
        inst.type or "",
    ]


def encode_results_csv(institutions: Iterable[Institution]) -> str:
    """Encode institutions in their current order as the export CSV text.

    Text columns are quoted, numbers are written at full precision and the
    first column is the 1-based rank.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    buf.write(",".join(config.EXPORT_HEADER) + "\n")
    for idx, inst in enumerate(institutions, start=1):
        writer.writerow(build_export_row(idx, inst))
    return buf.getvalue().rstrip("\n")


def write_results_csv(path: str, institutions: Iterable[Institution]) -> None:
    atomic_write_text(path, encode_results_csv(institutions))


def write_results_json(path: str, institutions: Iterable[Institution]) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump([inst.to_dict() for inst in institutions], f, ensure_ascii=False, indent=2)


def write_summary(path: str, summary_lines: List[str]) -> None:
    atomic_write_text(path, "\n".join(summary_lines))
