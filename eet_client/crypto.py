"""
Generación de códigos de seguridad EET (PKP / BKP) y primitivas criptográficas

PKP (podpisový kód poplatníka): firma RSA-SHA256 en base64 sobre los valores
    dic_popl|id_provoz|id_pokl|porad_cis|dat_trzby|celk_trzba (orden fijo).
BKP (bezpečnostní kód poplatníka): SHA-1 del PKP decodificado, en hex,
    agrupado en cinco bloques de 8 caracteres separados por '-'.

Ver EET_popis_rozhrani v3.1.1, secciones 4.1 y 4.2.
"""
import base64
import hashlib
import re
from typing import Mapping, Optional, Union

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .exceptions import CertificateError
from .models import SecurityCodes

PKP_FIELDS = ('dic_popl', 'id_provoz', 'id_pokl', 'porad_cis', 'dat_trzby', 'celk_trzba')

KeyInput = Union[rsa.RSAPrivateKey, bytes, str]

_PEM_HEADER_RE = re.compile(r'-----(BEGIN|END) CERTIFICATE-----')


def load_private_key(private_key: KeyInput, password: Optional[bytes] = None) -> rsa.RSAPrivateKey:
    """
    Normaliza la clave privada a un objeto RSAPrivateKey

    Args:
        private_key: Clave ya cargada o su contenido PEM (bytes/str)
        password: Contraseña de la clave PEM (opcional)

    Returns:
        Clave privada RSA
    """
    if isinstance(private_key, rsa.RSAPrivateKey):
        return private_key

    data = private_key.encode('ascii') if isinstance(private_key, str) else private_key
    try:
        key = serialization.load_pem_private_key(data, password=password)
    except (ValueError, TypeError) as e:
        raise CertificateError(f"Cannot load private key: {e}") from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise CertificateError("Private key must be an RSA key")
    return key


def sign_sha256_base64(private_key: KeyInput, data: Union[str, bytes]) -> str:
    """Firma RSA PKCS#1 v1.5 con SHA-256, resultado en base64"""
    key = load_private_key(private_key)
    payload = data.encode('utf-8') if isinstance(data, str) else data
    signature = key.sign(payload, padding.PKCS1v15(), hashes.SHA256())
    return base64.b64encode(signature).decode('ascii')


def hash_sha1_hex(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def hash_sha256_base64(data: Union[str, bytes]) -> str:
    payload = data.encode('utf-8') if isinstance(data, str) else data
    return base64.b64encode(hashlib.sha256(payload).digest()).decode('ascii')


def generate_pkp(private_key: KeyInput, data: Mapping[str, str]) -> str:
    """
    Genera el PKP a partir del mapa Data ya formateado

    Args:
        private_key: Clave privada RSA del contribuyente
        data: Mapa Data del ParsedRequest (valores en formato del protocolo)

    Returns:
        PKP en base64
    """
    plaintext = '|'.join(data[name] for name in PKP_FIELDS)
    return sign_sha256_base64(private_key, plaintext)


def generate_bkp(pkp: str, uppercase: bool = False) -> str:
    """
    Genera el BKP a partir del PKP

    Args:
        pkp: PKP en base64
        uppercase: Modo de compatibilidad con implementaciones que usan
            hex en mayúsculas (el formato canónico es minúsculas)

    Returns:
        BKP en formato xxxxxxxx-xxxxxxxx-xxxxxxxx-xxxxxxxx-xxxxxxxx
    """
    digest = hash_sha1_hex(base64.b64decode(pkp))
    if uppercase:
        digest = digest.upper()
    return '-'.join(digest[i:i + 8] for i in range(0, len(digest), 8))


def generate_security_codes(
    private_key: KeyInput,
    data: Mapping[str, str],
    uppercase_bkp: bool = False,
) -> SecurityCodes:
    pkp = generate_pkp(private_key, data)
    return SecurityCodes(pkp=pkp, bkp=generate_bkp(pkp, uppercase=uppercase_bkp))


def remove_pem_header(certificate: Union[str, bytes]) -> str:
    """
    Extrae el contenido base64 de un certificado PEM

    Quita encabezado, pie y saltos de línea; el resultado va en
    wsse:BinarySecurityToken.
    """
    text = certificate.decode('ascii') if isinstance(certificate, bytes) else certificate
    text = _PEM_HEADER_RE.sub('', text)
    return re.sub(r'\s+', '', text)
