"""
Tests del esquema del request (parse_request)
"""
from datetime import datetime, timezone

import pytest

from eet_client.exceptions import RequestParsingError
from eet_client.schema import SCHEMA, FieldKind, parse_request
from eet_client.utils import validate_uuid_v4


def test_parse_request_formats_sample(sale_record):
    request = parse_request(sale_record)

    assert request.data["dic_popl"] == "CZ1212121218"
    assert request.data["id_provoz"] == "273"
    assert request.data["id_pokl"] == "/5546/RO24"
    assert request.data["porad_cis"] == "0/6460/ZQ42"
    assert request.data["dat_trzby"] == "2016-08-04T22:30:12Z"
    assert request.data["celk_trzba"] == "34113.00"
    assert request.data["rezim"] == "0"


def test_parse_request_applies_header_defaults(sale_record):
    request = parse_request(sale_record)

    assert validate_uuid_v4(request.header["uuid_zpravy"])
    assert request.header["prvni_zaslani"] == "true"
    assert request.header["overeni"] == "false"
    assert request.header["dat_odesl"].endswith("Z")


def test_parse_request_generates_new_uuid_per_call(sale_record):
    first = parse_request(sale_record)
    second = parse_request(sale_record)
    assert first.uuid_zpravy != second.uuid_zpravy


def test_parse_request_keeps_given_header_values(sale_record):
    sale_record.update({
        "uuid_zpravy": "ae0af488-5115-48c0-8d10-0861a2921981",
        "dat_odesl": datetime(2020, 3, 5, 18, 56, 2, tzinfo=timezone.utc),
        "prvni_zaslani": False,
        "overeni": True,
    })
    request = parse_request(sale_record)

    assert request.header == {
        "uuid_zpravy": "ae0af488-5115-48c0-8d10-0861a2921981",
        "dat_odesl": "2020-03-05T18:56:02Z",
        "prvni_zaslani": "false",
        "overeni": "true",
    }


def test_parse_request_optional_money_fields(sale_record):
    sale_record.update({"zakl_dan1": 100000, "dan1": -21000})
    request = parse_request(sale_record)

    assert request.data["zakl_dan1"] == "1000.00"
    assert request.data["dan1"] == "-210.00"
    assert "zakl_dan2" not in request.data


def test_parse_request_delegating_taxpayer(sale_record):
    sale_record["dic_poverujiciho"] = "CZ00000019"
    request = parse_request(sale_record)
    assert request.data["dic_poverujiciho"] == "CZ00000019"


def test_parse_request_missing_required_field(sale_record):
    del sale_record["dic_popl"]

    with pytest.raises(RequestParsingError) as exc_info:
        parse_request(sale_record)

    assert str(exc_info.value) == "dic_popl must be set."


def test_parse_request_none_counts_as_missing(sale_record):
    sale_record["celk_trzba"] = None

    with pytest.raises(RequestParsingError, match="celk_trzba must be set."):
        parse_request(sale_record)


@pytest.mark.parametrize("key,value", [
    ("dic_popl", "CZ12"),
    ("id_provoz", 0),
    ("id_pokl", "x" * 21),
    ("celk_trzba", 12.5),
    ("celk_trzba", True),
    ("rezim", 2),
    ("dat_trzby", "2016-08-05T00:30:12+02:00"),
    ("uuid_zpravy", "not-a-uuid"),
])
def test_parse_request_invalid_value(sale_record, key, value):
    sale_record[key] = value

    with pytest.raises(RequestParsingError) as exc_info:
        parse_request(sale_record)

    assert key in str(exc_info.value)
    assert exc_info.value.value == value


def test_parse_request_rejects_non_mapping():
    with pytest.raises(RequestParsingError):
        parse_request(["dic_popl", "CZ1212121218"])


def test_parse_request_ignores_unknown_keys(sale_record):
    sale_record["poznamka"] = "ignorado"
    request = parse_request(sale_record)
    assert "poznamka" not in request.data
    assert "poznamka" not in request.header


def test_parsed_request_is_read_only(sale_record):
    request = parse_request(sale_record)
    with pytest.raises(TypeError):
        request.data["celk_trzba"] = "0.00"


def test_schema_money_fields_use_money_kind():
    money = [spec.key for spec in SCHEMA if spec.kind is FieldKind.MONEY]
    assert money[0] == "celk_trzba"
    assert len(money) == 14
