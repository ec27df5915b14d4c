"""
Carga de clave privada y certificado del contribuyente

Soporta:
- PKCS#12 (.p12/.pfx) con contraseña, como lo entrega la autoridad
- PEM separado (clave privada + certificado)

Requisitos: clave RSA de al menos 2048 bits, certificado X.509.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from .exceptions import CertificateError

logger = logging.getLogger(__name__)

MIN_KEY_SIZE = 2048

PathLike = Union[str, Path]


def _encode_password(password: Optional[Union[str, bytes]]) -> Optional[bytes]:
    if password is None or password == '' or password == b'':
        return None
    return password.encode() if isinstance(password, str) else password


def _validate_key_and_certificate(private_key, certificate: x509.Certificate) -> None:
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise CertificateError("Private key must be an RSA key")

    if private_key.key_size < MIN_KEY_SIZE:
        raise CertificateError(
            f"RSA key must be at least {MIN_KEY_SIZE} bits, got {private_key.key_size}"
        )

    # cryptography >= 42 expone not_valid_after_utc
    if hasattr(certificate, 'not_valid_after_utc'):
        not_valid_after = certificate.not_valid_after_utc
    else:
        not_valid_after = certificate.not_valid_after.replace(tzinfo=timezone.utc)

    if not_valid_after < datetime.now(timezone.utc):
        logger.warning(f"Certificado expirado. Válido hasta: {not_valid_after}")
    else:
        logger.info(
            f"Certificado cargado. Emisor: {certificate.issuer.rfc4514_string()}, "
            f"válido hasta: {not_valid_after}"
        )


def _certificate_pem(certificate: x509.Certificate) -> str:
    return certificate.public_bytes(serialization.Encoding.PEM).decode('ascii')


def load_pkcs12(
    p12_path: PathLike,
    password: Optional[Union[str, bytes]] = None,
) -> Tuple[rsa.RSAPrivateKey, str]:
    """
    Carga clave privada y certificado desde un archivo PKCS#12

    Args:
        p12_path: Ruta al archivo .p12/.pfx
        password: Contraseña del archivo

    Returns:
        (clave privada, certificado en PEM)
    """
    path = Path(p12_path)
    if not path.exists():
        raise CertificateError(f"Certificate file not found: {path}")

    try:
        private_key, certificate, _ = pkcs12.load_key_and_certificates(
            path.read_bytes(), _encode_password(password)
        )
    except ValueError as e:
        raise CertificateError(f"Cannot load PKCS#12 file {path}: {e}") from e

    if private_key is None:
        raise CertificateError(f"PKCS#12 file {path} does not contain a private key")
    if certificate is None:
        raise CertificateError(f"PKCS#12 file {path} does not contain a certificate")

    _validate_key_and_certificate(private_key, certificate)
    return private_key, _certificate_pem(certificate)


def load_pem(
    key_path: PathLike,
    cert_path: PathLike,
    password: Optional[Union[str, bytes]] = None,
) -> Tuple[rsa.RSAPrivateKey, str]:
    """
    Carga clave privada y certificado desde archivos PEM separados

    Returns:
        (clave privada, certificado en PEM)
    """
    key_file = Path(key_path)
    cert_file = Path(cert_path)
    for path in (key_file, cert_file):
        if not path.exists():
            raise CertificateError(f"File not found: {path}")

    try:
        private_key = serialization.load_pem_private_key(
            key_file.read_bytes(), password=_encode_password(password)
        )
        certificate = x509.load_pem_x509_certificate(cert_file.read_bytes())
    except (ValueError, TypeError) as e:
        raise CertificateError(f"Cannot load PEM key/certificate: {e}") from e

    _validate_key_and_certificate(private_key, certificate)
    return private_key, _certificate_pem(certificate)
