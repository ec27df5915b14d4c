"""
Modelos de datos del cliente EET
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union


@dataclass(frozen=True)
class ParsedRequest:
    """Request validado y formateado, separado en Hlavicka (header) y Data"""
    header: Mapping[str, str]
    data: Mapping[str, str]

    def __post_init__(self):
        # Vistas de solo lectura sobre copias propias
        object.__setattr__(self, 'header', MappingProxyType(dict(self.header)))
        object.__setattr__(self, 'data', MappingProxyType(dict(self.data)))

    @property
    def uuid_zpravy(self) -> str:
        return self.header['uuid_zpravy']

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {'header': dict(self.header), 'data': dict(self.data)}


@dataclass(frozen=True)
class SecurityCodes:
    """Códigos de seguridad del contribuyente (PKP firmado, BKP derivado)"""
    pkp: str
    bkp: str


@dataclass(frozen=True)
class ServerMessage:
    """Error (Chyba) o advertencia (Varovani) devuelta por el servidor"""
    code: Optional[str]
    message: Optional[str]


@dataclass(frozen=True)
class Confirmation:
    """Respuesta de confirmación (Potvrzeni) con FIK"""
    uuid_zpravy: Optional[str]
    bkp: Optional[str]
    dat_prij: Optional[datetime]
    test: bool
    fik: Optional[str]
    warnings: List[ServerMessage] = field(default_factory=list)
    response_time: Optional[float] = None


@dataclass(frozen=True)
class Rejection:
    """Respuesta de rechazo (Chyba)"""
    uuid_zpravy: Optional[str]
    bkp: Optional[str]
    dat_odmit: Optional[datetime]
    error: ServerMessage
    warnings: List[ServerMessage] = field(default_factory=list)


ServerResponse = Union[Confirmation, Rejection]


@dataclass(frozen=True)
class ExpectedResponse:
    """Valores del request que el servidor debe devolver sin cambios"""
    uuid_zpravy: str
    bkp: str
    playground: bool


class Outcome(str, Enum):
    """Resultado de un envío: confirmado, recuperable (modo offline) o fatal"""
    OK = "ok"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


@dataclass(frozen=True)
class EetResult:
    """
    Resultado de un envío a EET

    - OK: response contiene la confirmación con FIK
    - RECOVERABLE: el envío falló con modo offline activo; codes contiene
      PKP/BKP calculados localmente y error la causa
    - FATAL: el envío falló sin modo offline; error contiene la causa
    """
    outcome: Outcome
    request: ParsedRequest
    codes: SecurityCodes
    response: Optional[Confirmation] = None
    error: Optional[Exception] = None
    raw_response: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def fik(self) -> Optional[str]:
        return self.response.fik if self.response is not None else None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'outcome': self.outcome.value,
            'request': self.request.to_dict(),
            'pkp': self.codes.pkp,
            'bkp': self.codes.bkp,
        }
        if self.response is not None:
            result['response'] = {
                'uuid_zpravy': self.response.uuid_zpravy,
                'bkp': self.response.bkp,
                'dat_prij': self.response.dat_prij.isoformat() if self.response.dat_prij else None,
                'test': self.response.test,
                'fik': self.response.fik,
                'warnings': [
                    {'code': w.code, 'message': w.message} for w in self.response.warnings
                ],
                'response_time': self.response.response_time,
            }
        if self.error is not None:
            result['error'] = {
                'type': type(self.error).__name__,
                'message': str(self.error),
            }
        return result
