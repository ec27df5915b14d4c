"""
Pytest configuration y fixtures para tests del cliente EET
"""
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from eet_client import pipeline_logger
from eet_client.config import EetConfig
from eet_client.pipeline_logger import PipelineLogger

P12_PASSWORD = "eet"

# Respuestas reales del playground (ver EET_popis_rozhrani v3.1.1)
RESPONSE_UUID = "ae0af488-5115-48c0-8d10-0861a2921981"
RESPONSE_BKP = "6d8adb2d-a3a20e55-b78e8168-b240c580-38c71f7d"
RESPONSE_FIK = "f741687f-61c8-4672-917a-46bcf8eff62d-fa"

ENVELOPE_TEMPLATE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
    '<soap:Header></soap:Header>'
    '<soap:Body>'
    '<eet:Odpoved xmlns:eet="http://fs.mfcr.cz/eet/schema/v3">{content}</eet:Odpoved>'
    '</soap:Body>'
    '</soap:Envelope>'
)


def make_response(
    uuid_zpravy: str = RESPONSE_UUID,
    bkp: str = RESPONSE_BKP,
    fik: str = RESPONSE_FIK,
    test: str = "true",
    warnings=(),
) -> str:
    """Arma una respuesta de confirmación como la devuelve EET"""
    test_attr = f' test="{test}"' if test is not None else ''
    content = (
        f'<eet:Hlavicka uuid_zpravy="{uuid_zpravy}" bkp="{bkp}" dat_prij="2020-03-05T19:56:02+01:00" />'
        f'<eet:Potvrzeni fik="{fik}"{test_attr} />'
    )
    for code, text in warnings:
        content += f'<eet:Varovani kod_varov="{code}">{text}</eet:Varovani>'
    return ENVELOPE_TEMPLATE.format(content=content)


def make_error_response(code: str = "5", text: str = "Neplatny kontrolni bezpecnostni kod poplatnika (BKP)") -> str:
    content = (
        f'<eet:Hlavicka uuid_zpravy="{RESPONSE_UUID}" dat_odmit="2020-03-05T19:56:02+01:00" />'
        f'<eet:Chyba kod="{code}">{text}</eet:Chyba>'
    )
    return ENVELOPE_TEMPLATE.format(content=content)


@pytest.fixture(scope="session")
def private_key():
    """Clave RSA 2048 generada para los tests"""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def certificate(private_key):
    """Certificado X.509 autofirmado para la clave de test"""
    name = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "CZ"),
        x509.NameAttribute(NameOID.COMMON_NAME, "CZ1212121218"),
    ])
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .sign(private_key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def certificate_pem(certificate) -> str:
    return certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture
def pem_files(tmp_path, private_key, certificate_pem):
    """Clave y certificado en archivos PEM separados"""
    key_file = tmp_path / "key.pem"
    key_file.write_bytes(private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ))
    cert_file = tmp_path / "cert.pem"
    cert_file.write_text(certificate_pem)
    return key_file, cert_file


@pytest.fixture
def p12_file(tmp_path, private_key, certificate):
    """Clave y certificado en un PKCS#12 con contraseña"""
    p12 = tmp_path / "eet.p12"
    p12.write_bytes(pkcs12.serialize_key_and_certificates(
        b"eet-test",
        private_key,
        certificate,
        None,
        serialization.BestAvailableEncryption(P12_PASSWORD.encode()),
    ))
    return p12


@pytest.fixture
def sale_record():
    """Venta de ejemplo del playground"""
    return {
        "dic_popl": "CZ1212121218",
        "id_provoz": 273,
        "id_pokl": "/5546/RO24",
        "porad_cis": "0/6460/ZQ42",
        "dat_trzby": datetime(2016, 8, 5, 0, 30, 12, tzinfo=timezone(timedelta(hours=2))),
        "celk_trzba": 3411300,
    }


@pytest.fixture
def eet_config(monkeypatch):
    """Configuración de playground sin depender del entorno"""
    for name in (
        "EET_ENV", "EET_TIMEOUT", "EET_OFFLINE", "EET_MEASURE_RESPONSE_TIME",
        "EET_USER_AGENT", "EET_PLAYGROUND_URL", "EET_PRODUCTION_URL",
        "EET_P12_PATH", "EET_KEY_PATH", "EET_CERT_PATH", "EET_DEBUG_SOAP",
    ):
        monkeypatch.delenv(name, raising=False)
    return EetConfig(EetConfig.ENV_PLAYGROUND)


@pytest.fixture(autouse=True)
def quiet_pipeline_logger(monkeypatch):
    """Logger del cliente sin handler de consola (los tests usan caplog)"""
    monkeypatch.setattr(
        pipeline_logger, "_global_logger", PipelineLogger("eet_pipeline", console=False)
    )
