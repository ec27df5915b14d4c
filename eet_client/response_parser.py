"""
Parsing y validación de la respuesta XML de EET (Odpoved)

Estados posibles de una respuesta:
- XML mal formado          -> ResponseParsingError
- estructura incompleta    -> WrongServerResponse (indica la ruta faltante)
- rechazo (Chyba)          -> ResponseServerError (en validate_response)
- confirmación (Potvrzeni) -> Confirmation

Nota: la firma del servidor NO se verifica.
"""
import logging
from dataclasses import replace
from typing import List, Optional, Union

from lxml import etree

from .exceptions import ResponseParsingError, ResponseServerError, WrongServerResponse
from .models import Confirmation, ExpectedResponse, Rejection, ServerMessage, ServerResponse
from .utils import parse_bool, parse_datetime, validate_fik

logger = logging.getLogger(__name__)

# Código de advertencia: 'kod_varov' según esquema v3; 'kod' en versiones antiguas
WARNING_CODE_ATTRIBUTES = ('kod_varov', 'kod')


def _localname(node: etree._Element) -> Optional[str]:
    # Comentarios e instrucciones de procesamiento no tienen tag de texto
    if not isinstance(node.tag, str):
        return None
    return etree.QName(node).localname


def _children(node: etree._Element, localname: str) -> List[etree._Element]:
    return [child for child in node if _localname(child) == localname]


def _child(node: Optional[etree._Element], localname: str) -> Optional[etree._Element]:
    if node is None:
        return None
    found = _children(node, localname)
    return found[0] if found else None


def _text(node: etree._Element) -> Optional[str]:
    return node.text.strip() if node.text else None


def parse_response_xml(xml: Union[str, bytes]) -> etree._Element:
    """
    Parsea el XML de respuesta

    Args:
        xml: Respuesta del servidor

    Returns:
        Elemento raíz

    Raises:
        ResponseParsingError: Si el XML no está bien formado
    """
    data = xml.encode('utf-8') if isinstance(xml, str) else xml
    if not data or not data.strip():
        raise ResponseParsingError('XML response is empty')

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        return etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise ResponseParsingError(e.msg, e.code, e.lineno) from e


def _parse_warnings(odpoved: etree._Element) -> List[ServerMessage]:
    warnings = []
    for varovani in _children(odpoved, 'Varovani'):
        code = None
        for attribute in WARNING_CODE_ATTRIBUTES:
            code = varovani.get(attribute)
            if code is not None:
                break
        warnings.append(ServerMessage(code=code, message=_text(varovani)))
    return warnings


def _parse_date_attribute(hlavicka: Optional[etree._Element], name: str):
    if hlavicka is None or hlavicka.get(name) is None:
        return None

    value = parse_datetime(hlavicka.get(name))
    if value is None:
        raise WrongServerResponse(f"Response contains an invalid value for Hlavicka>{name}")
    return value


def extract_response(root: Optional[etree._Element]) -> ServerResponse:
    """
    Transforma el XML de respuesta en Confirmation o Rejection

    Args:
        root: Elemento raíz (soap:Envelope)

    Returns:
        Confirmation si hay Potvrzeni, Rejection si hay Chyba

    Raises:
        WrongServerResponse: Si falta la estructura esperada o hay valores inválidos
    """
    if root is None:
        raise WrongServerResponse('XML response empty')

    odpoved = None
    if _localname(root) == 'Envelope':
        odpoved = _child(_child(root, 'Body'), 'Odpoved')

    if odpoved is None:
        raise WrongServerResponse('Response does not contain Envelope>Body>Odpoved')

    hlavicka = _child(odpoved, 'Hlavicka')
    uuid_zpravy = hlavicka.get('uuid_zpravy') if hlavicka is not None else None
    bkp = hlavicka.get('bkp') if hlavicka is not None else None

    # Puede haber cero, una o varias advertencias
    warnings = _parse_warnings(odpoved)

    chyba = _child(odpoved, 'Chyba')
    if chyba is not None:
        # dat_odmit puede faltar si el error es crítico
        return Rejection(
            uuid_zpravy=uuid_zpravy,
            bkp=bkp,
            dat_odmit=_parse_date_attribute(hlavicka, 'dat_odmit'),
            error=ServerMessage(code=chyba.get('kod'), message=_text(chyba)),
            warnings=warnings,
        )

    potvrzeni = _child(odpoved, 'Potvrzeni')
    if potvrzeni is None:
        raise WrongServerResponse('Response does not contain Envelope>Body>Odpoved>Potvrzeni')

    # test se omite cuando es false
    test = False
    if potvrzeni.get('test') is not None:
        test = parse_bool(potvrzeni.get('test'))
        if test is None:
            raise WrongServerResponse('Response contains an invalid value for Potvrzeni>test')

    return Confirmation(
        uuid_zpravy=uuid_zpravy,
        bkp=bkp,
        dat_prij=_parse_date_attribute(hlavicka, 'dat_prij'),
        test=test,
        fik=potvrzeni.get('fik'),
        warnings=warnings,
    )


def validate_response(expected: ExpectedResponse, response: ServerResponse) -> Confirmation:
    """
    Valida la respuesta contra el request enviado

    UUID, BKP y test deben coincidir con lo enviado; dat_prij y FIK deben
    ser válidos.

    Args:
        expected: Valores del request enviado
        response: Respuesta extraída

    Returns:
        La confirmación validada

    Raises:
        ResponseServerError: Si la respuesta es un rechazo
        WrongServerResponse: Si algún valor no coincide o es inválido
    """
    if isinstance(response, Rejection):
        raise ResponseServerError(response.error.message, response.error.code, response.dat_odmit)

    if response.uuid_zpravy != expected.uuid_zpravy:
        raise WrongServerResponse(
            f"UUID in response: {response.uuid_zpravy} is not same as sent: {expected.uuid_zpravy}"
        )

    if response.bkp != expected.bkp:
        raise WrongServerResponse(
            f"BKP in response: {response.bkp} is not same as sent: {expected.bkp}"
        )

    if response.dat_prij is None:
        raise WrongServerResponse('dat_prij in response is missing or invalid')

    if response.test != expected.playground:
        raise WrongServerResponse(
            f"test in response: {response.test} is not same as sent: {expected.playground}"
        )

    if not validate_fik(response.fik):
        raise WrongServerResponse(f"FIK in response is invalid: {response.fik}")

    return response


def interpret_response(
    xml: Union[str, bytes],
    expected: ExpectedResponse,
    response_time: Optional[float] = None,
) -> Confirmation:
    """Parsea, extrae y valida la respuesta en un solo paso"""
    confirmation = validate_response(expected, extract_response(parse_response_xml(xml)))

    if confirmation.warnings:
        for warning in confirmation.warnings:
            logger.warning(f"Advertencia EET [{warning.code}]: {warning.message}")

    if response_time is not None:
        confirmation = replace(confirmation, response_time=response_time)
    return confirmation
