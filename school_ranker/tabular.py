"""Semicolon-delimited table parsing."""
from __future__ import annotations

from typing import Dict, List

from . import config

Row = Dict[str, str]

SAMPLE_CSV = "\n".join(
    [
        config.OFFICIAL_HEADER,
        "2023-2024;0590248Z;public;91.0;50.3498386310885,3.2842295962456927;"
        "Établissement Louis Pasteur;Lille;59;Nord;59574;Somain",
        "2023-2024;0593131H;privé sous contrat;103.6;50.62928989778109,3.107342498302463;"
        "Établissement privé Saint Joseph;Lille;59;Nord;59350;Lille",
        "2023-2024;0594297A;public;80.3;50.412707862648475,3.0535806066000877;"
        "Établissement Victor Hugo;Lille;59;Nord;59028;Auby",
        "2023-2024;0594298B;public;99.9;50.354996614883795,3.0620302418370793;"
        "Établissement André Malraux;Lille;59;Nord;59329;Lambres-lez-Douai",
        "2023-2024;0594304H;public;89.1;50.45062444729204,3.432100353409098;"
        "Établissement Marie Curie;Lille;59;Nord;59526;Saint-Amand-les-Eaux",
        "2023-2024;0620039F;public;88.4;50.08837894809274,2.9812501868009518;"
        "Établissement Jacques-Yves Cousteau;Lille;62;Pas-de-Calais;62117;Bertincourt",
    ]
)


def clean_cell(value: str) -> str:
    value = value.strip()
    for ch in config.STRIPPED_QUOTE_CHARS:
        value = value.replace(ch, "")
    return value


def split_line(line: str, delimiter: str = config.DELIMITER) -> List[str]:
    """Split one line, treating delimiters between double quotes as text.

    A double quote only toggles the quoted state and is not copied into the
    field. There is no escaped-quote handling.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    for ch in line:
        if ch == config.QUOTE_CHAR:
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def parse_table(text: str) -> List[Row]:
    lines = (text or "").lstrip("\ufeff").strip().split("\n")
    if len(lines) < 2:
        return []

    headers = [clean_cell(h) for h in lines[0].split(config.DELIMITER)]
    rows: List[Row] = []
    for line in lines[1:]:
        values = split_line(line)
        if len(values) != len(headers):
            continue
        rows.append({header: clean_cell(value) for header, value in zip(headers, values)})
    return rows
