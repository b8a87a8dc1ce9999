from school_ranker.normalize import (
    normalize_generic_row,
    normalize_official_row,
    normalize_row,
    normalize_rows,
    parse_coordinate,
)
from school_ranker.tabular import SAMPLE_CSV, parse_table


def test_official_row_minimal():
    inst = normalize_row(
        {"appellation_officielle": "École A", "position": "48.8,2.3", "secteur": "public"}, 0
    )
    assert inst is not None
    assert inst.name == "École A"
    assert inst.latitude == 48.8
    assert inst.longitude == 2.3
    assert inst.type == "public"
    assert inst.address is None
    assert inst.external_code is None
    assert inst.distance is None


def test_official_row_full():
    row = {
        "uai": "0590248Z",
        "secteur": "public",
        "ips": "91.0",
        "position": " 50.35 , 3.28 ",
        "appellation_officielle": "Collège Louis Pasteur",
        "libelle_departement": "Nord",
        "libelle_commune": "Somain",
    }
    inst = normalize_official_row(row, 7)
    assert inst.id == 7
    assert inst.external_code == "0590248Z"
    assert inst.address == "Somain, Nord"
    assert inst.type == "public (IPS: 91.0)"
    assert (inst.latitude, inst.longitude) == (50.35, 3.28)


def test_official_row_defaults():
    inst = normalize_row(
        {"appellation_officielle": "X", "position": "1,2", "ips": "88.4", "libelle_departement": "Nord"},
        0,
    )
    assert inst.type == "Établissement (IPS: 88.4)"
    assert inst.address == "Nord"

    inst = normalize_row({"appellation_officielle": "X", "position": "1,2", "libelle_commune": ""}, 0)
    assert inst.type == "Établissement"
    assert inst.address is None


def test_official_row_bad_position_is_dropped():
    base = {"appellation_officielle": "École A"}
    assert normalize_row(dict(base, position="48.8"), 0) is None
    assert normalize_row(dict(base, position="48.8,2.3,1"), 0) is None
    assert normalize_row(dict(base, position="abc,2.3"), 0) is None
    assert normalize_row(dict(base, position="nan,2.3"), 0) is None


def test_failed_official_row_is_not_retried_as_generic():
    row = {
        "appellation_officielle": "École A",
        "position": "48.8",
        "nom": "École A",
        "lat": "48.8",
        "lon": "2.3",
    }
    assert normalize_row(row, 0) is None


def test_empty_official_fields_fall_back_to_generic():
    row = {"appellation_officielle": "", "position": "1,2", "nom": "École B", "lat": "45", "lon": "5"}
    inst = normalize_row(row, 0)
    assert inst.name == "École B"
    assert (inst.latitude, inst.longitude) == (45.0, 5.0)


def test_generic_row_minimal():
    inst = normalize_row({"nom": "École B", "lat": "45.0", "lon": "5.0"}, 3)
    assert inst.id == 3
    assert inst.name == "École B"
    assert inst.latitude == 45.0
    assert inst.longitude == 5.0
    assert inst.address is None
    assert inst.type is None


def test_generic_row_never_has_external_code():
    inst = normalize_generic_row({"nom": "B", "lat": "1", "lon": "2", "uai": "0590248Z"}, 0)
    assert inst.external_code is None


def test_generic_candidates_first_match_wins():
    row = {
        "Nom": "Later",
        "name": "First",
        "Lat": "9",
        "lat": "1.5",
        "LNG": "8",
        "lng": "2.5",
        "Adresse": "1 rue B",
        "address": "1 rue A",
        "Category": "cat",
        "type": "public",
    }
    inst = normalize_generic_row(row, 0)
    assert inst.name == "First"
    assert inst.latitude == 1.5
    assert inst.longitude == 2.5
    assert inst.address == "1 rue A"
    assert inst.type == "public"


def test_generic_row_school_and_category_keys():
    inst = normalize_generic_row(
        {"school": "S", "LATITUDE": "1", "LON": "2", "CATEGORY": "privé"}, 0
    )
    assert inst.name == "S"
    assert inst.type == "privé"


def test_generic_row_missing_fields_are_dropped():
    assert normalize_row({"lat": "1", "lon": "2"}, 0) is None
    assert normalize_row({"nom": "B", "lon": "2"}, 0) is None
    assert normalize_row({"nom": "B", "lat": "1"}, 0) is None
    assert normalize_row({"nom": "", "lat": "1", "lon": "2"}, 0) is None
    assert normalize_row({"nom": "B", "lat": "n/a", "lon": "2"}, 0) is None
    assert normalize_row({"nom": "B", "lat": "1", "lon": "inf"}, 0) is None


def test_ids_are_dense_over_accepted_rows():
    rows = [
        {"nom": "A", "lat": "1", "lon": "1"},
        {"nom": "broken", "lat": "x", "lon": "1"},
        {"nom": "C", "lat": "3", "lon": "3"},
    ]
    institutions = normalize_rows(rows)
    assert [(i.id, i.name) for i in institutions] == [(0, "A"), (1, "C")]


def test_empty_rows_give_empty_list():
    assert normalize_rows(parse_table("")) == []


def test_sample_dataset_normalizes():
    institutions = normalize_rows(parse_table(SAMPLE_CSV))
    assert len(institutions) == 6
    assert institutions[1].type == "privé sous contrat (IPS: 103.6)"
    assert institutions[1].address == "Lille, Nord"
    assert institutions[5].address == "Bertincourt, Pas-de-Calais"


def test_parse_coordinate():
    assert parse_coordinate(" 3.5 ") == 3.5
    assert parse_coordinate("-0.25") == -0.25
    assert parse_coordinate("") is None
    assert parse_coordinate(None) is None
    assert parse_coordinate("-inf") is None


def test_parse_coordinate_rejects_digit_separators():
    assert parse_coordinate("4_8.8") is None
    assert parse_coordinate("50_000") is None
    assert parse_coordinate(3.5) is None
