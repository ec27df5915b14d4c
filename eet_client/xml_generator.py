"""
Generador XML canónico para el mensaje Trzba (EET v3)

El body SOAP se construye directamente en forma canónica (C14N exclusivo):
- los tags se cierran explícitamente (<Tag ...></Tag>)
- los atributos se ordenan por clave (orden ordinal, no de locale)

El digest de la firma se calcula sobre exactamente estos bytes, por lo que
el body debe generarse una sola vez y reutilizarse sin modificar.

IMPORTANTE: los valores de atributos se insertan tal cual, sin escapar.
El esquema del request restringe los caracteres de todos los campos.
"""
from typing import Mapping

from .models import SecurityCodes

SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
EET_NS = "http://fs.mfcr.cz/eet/schema/v3"
BODY_ID = "Body"


def serialize_element(tag_name: str, attributes: Mapping[str, str]) -> str:
    """
    Serializa un elemento vacío con atributos en forma canónica

    Args:
        tag_name: Nombre del elemento (ej: 'Hlavicka')
        attributes: Atributos del elemento

    Returns:
        Elemento XML, ej: '<Hlavicka a="1" b="2"></Hlavicka>'
    """
    attrs = ' '.join(f'{key}="{attributes[key]}"' for key in sorted(attributes))
    if attrs:
        return f'<{tag_name} {attrs}></{tag_name}>'
    return f'<{tag_name}></{tag_name}>'


def serialize_kontrolni_kody(codes: SecurityCodes) -> str:
    """Genera el elemento KontrolniKody con PKP y BKP"""
    return (
        '<KontrolniKody>'
        f'<pkp cipher="RSA2048" digest="SHA256" encoding="base64">{codes.pkp}</pkp>'
        f'<bkp digest="SHA1" encoding="base16">{codes.bkp}</bkp>'
        '</KontrolniKody>'
    )


def serialize_soap_body(
    header: Mapping[str, str],
    data: Mapping[str, str],
    codes: SecurityCodes,
) -> str:
    """
    Genera el soap:Body completo en forma canónica

    Args:
        header: Atributos de Hlavicka
        data: Atributos de Data
        codes: PKP y BKP

    Returns:
        soap:Body con el mensaje Trzba
    """
    return (
        f'<soap:Body xmlns:soap="{SOAP_NS}" id="{BODY_ID}">'
        f'<Trzba xmlns="{EET_NS}">'
        + serialize_element('Hlavicka', header)
        + serialize_element('Data', data)
        + serialize_kontrolni_kody(codes)
        + '</Trzba>'
        '</soap:Body>'
    )
