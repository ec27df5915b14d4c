"""
Cliente para el registro electrónico de ventas EET (Elektronická evidence tržeb)
República Checa - servicio OdeslaniTrzby v3
"""
from .client import EetClient, send_eet_request
from .config import EetConfig, get_eet_config
from .crypto import generate_bkp, generate_pkp, generate_security_codes
from .exceptions import (
    CertificateError,
    EetClientError,
    RequestParsingError,
    ResponseParsingError,
    ResponseServerError,
    ResponseSizeLimitError,
    TransportError,
    WrongServerResponse,
)
from .models import Confirmation, EetResult, Outcome, Rejection
from .schema import parse_request

__all__ = [
    'EetClient', 'send_eet_request', 'EetConfig', 'get_eet_config',
    'generate_pkp', 'generate_bkp', 'generate_security_codes', 'parse_request',
    'EetResult', 'Outcome', 'Confirmation', 'Rejection',
    'EetClientError', 'RequestParsingError', 'ResponseParsingError', 'WrongServerResponse',
    'ResponseSizeLimitError', 'ResponseServerError', 'TransportError', 'CertificateError',
]
