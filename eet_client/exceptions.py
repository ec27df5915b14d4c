"""
Excepciones del cliente EET

Jerarquía:
- EetClientError: base de todos los errores del cliente
  - RequestParsingError: los datos de la venta no pasan el esquema (nunca se envían)
  - ResponseParsingError: la respuesta no es XML bien formado
  - WrongServerResponse: XML válido pero incompleto o que no corresponde al request
    - ResponseSizeLimitError: la respuesta excede el tamaño máximo aceptado
  - ResponseServerError: la autoridad rechazó el mensaje (elemento Chyba)
  - TransportError: fallo de red / timeout
  - CertificateError: no se pudo cargar la clave privada o el certificado
  - EnvelopeVerificationError: el envelope a verificar no contiene la firma
"""
from datetime import datetime
from typing import Any, Optional


class EetClientError(Exception):
    """Excepción base para errores del cliente EET"""
    pass


class RequestParsingError(EetClientError):
    """Los datos de la venta no cumplen el esquema del request"""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.message = message
        self.value = value


class ResponseParsingError(EetClientError):
    """La respuesta del servidor no es XML bien formado"""

    def __init__(self, message: str, code: Optional[Any] = None, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.line = line

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.message} (code={self.code}, line={self.line})"
        return self.message


class WrongServerResponse(EetClientError):
    """Respuesta bien formada pero incompleta, inválida o de otro request"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResponseSizeLimitError(WrongServerResponse):
    """La respuesta excede el tamaño máximo aceptado"""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Response size {size} bytes exceeds the limit of {limit} bytes"
        )


class ResponseServerError(EetClientError):
    """La autoridad rechazó explícitamente el mensaje"""

    def __init__(self, message: str, code: Optional[str] = None, dat_odmit: Optional[datetime] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.dat_odmit = dat_odmit

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class TransportError(EetClientError):
    """Error de red o timeout al comunicarse con el servidor EET"""
    pass


class CertificateError(EetClientError):
    """Error al cargar la clave privada o el certificado"""
    pass


class EnvelopeVerificationError(EetClientError):
    """El envelope firmado no contiene los elementos de la firma"""
    pass
