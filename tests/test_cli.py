"""
Tests del CLI (python -m eet_client)
"""
import argparse
import json
from unittest.mock import patch

import pytest

from conftest import make_response
from eet_client import cli
from eet_client.exceptions import TransportError
from eet_client.soap_client import HttpResponse

ARGS = [
    "send",
    "--dic", "CZ1212121218",
    "--provoz", "273",
    "--pokladna", "/5546/RO24",
    "--uctenka", "0/6460/ZQ42",
    "--castka", "34113.00",
]


@pytest.fixture
def key_env(eet_config, monkeypatch, pem_files):
    key_file, cert_file = pem_files
    monkeypatch.setenv("EET_KEY_PATH", str(key_file))
    monkeypatch.setenv("EET_CERT_PATH", str(cert_file))


@pytest.mark.parametrize("value,expected", [
    ("34113.00", 3411300),
    ("0,01", 1),
    ("-12.5", -1250),
    ("100", 10000),
])
def test_amount(value, expected):
    assert cli._amount(value) == expected


@pytest.mark.parametrize("value", ["abc", "1.001", "Infinity", "-inf", "NaN", "1E+30"])
def test_amount_invalid(value):
    with pytest.raises(argparse.ArgumentTypeError):
        cli._amount(value)


def test_dry_run(key_env, capsys):
    assert cli.main(ARGS + ["--dry-run"]) == cli.EXIT_OK

    output = json.loads(capsys.readouterr().out)
    assert output["signature_valid"] is True
    assert output["request"]["data"]["celk_trzba"] == "34113.00"
    assert output["envelope"].startswith("<soap:Envelope")


def test_invalid_sale_exits_with_error(key_env, capsys):
    args = list(ARGS)
    args[args.index("--dic") + 1] = "CZ12"

    assert cli.main(args + ["--dry-run"]) == cli.EXIT_ERROR
    assert "dic_popl" in capsys.readouterr().err


def test_missing_certificate_exits_with_error(eet_config, capsys):
    assert cli.main(ARGS) == cli.EXIT_ERROR
    assert "EET_P12_PATH" in capsys.readouterr().err


def test_offline_recoverable_exit_code(key_env, capsys):
    with patch("eet_client.client.SoapClient") as soap_client:
        soap_client.return_value.post.side_effect = TransportError("Timeout (2.0s)")
        exit_code = cli.main(ARGS + ["--offline"])

    assert exit_code == cli.EXIT_RECOVERABLE
    output = json.loads(capsys.readouterr().out)
    assert output["outcome"] == "recoverable"
    assert output["error"]["type"] == "TransportError"
    assert "fik" not in output


def test_send_ok(key_env, capsys):
    def post(envelope):
        from lxml import etree
        from eet_client.xml_generator import EET_NS

        root = etree.fromstring(envelope.encode("utf-8"))
        text = make_response(
            uuid_zpravy=root.find(f".//{{{EET_NS}}}Hlavicka").get("uuid_zpravy"),
            bkp=root.find(f".//{{{EET_NS}}}bkp").text,
        )
        return HttpResponse(200, {}, text.encode("utf-8"), 0.01)

    with patch("eet_client.client.SoapClient") as soap_client:
        soap_client.return_value.post.side_effect = post
        exit_code = cli.main(ARGS)

    assert exit_code == cli.EXIT_OK
    output = json.loads(capsys.readouterr().out)
    assert output["response"]["fik"] == "f741687f-61c8-4672-917a-46bcf8eff62d-fa"
