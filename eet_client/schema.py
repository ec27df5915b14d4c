"""
Esquema del request EET (Hlavicka + Data)

Tabla declarativa de campos: cada FieldSpec indica sección, nombre en el
XML, tipo, obligatoriedad, validador y valor por defecto. parse_request()
recorre la tabla en orden de declaración y produce un ParsedRequest.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .exceptions import RequestParsingError
from .models import ParsedRequest
from .utils import (
    format_amount,
    format_bool,
    format_datetime,
    validate_amount,
    validate_bool,
    validate_cz_vat_id,
    validate_datetime,
    validate_id_pokl,
    validate_id_provoz,
    validate_porad_cis,
    validate_rezim,
    validate_uuid_v4,
)

logger = logging.getLogger(__name__)

SECTION_HEADER = 'header'
SECTION_DATA = 'data'


class FieldKind(Enum):
    IDENTIFIER = 'identifier'
    MONEY = 'money'
    TIMESTAMP = 'timestamp'
    FLAG = 'flag'
    REGIME = 'regime'


FORMATTERS: Dict[FieldKind, Callable[[Any], str]] = {
    FieldKind.IDENTIFIER: str,
    FieldKind.MONEY: format_amount,
    FieldKind.TIMESTAMP: format_datetime,
    FieldKind.FLAG: format_bool,
    FieldKind.REGIME: str,
}


@dataclass(frozen=True)
class FieldSpec:
    key: str
    section: str
    wire_name: str
    kind: FieldKind
    required: bool
    validate: Callable[[Any], bool]
    default: Optional[Callable[[], Any]] = None

    def format(self, value: Any) -> str:
        return FORMATTERS[self.kind](value)


def _money(key: str) -> FieldSpec:
    return FieldSpec(key, SECTION_DATA, key, FieldKind.MONEY, False, validate_amount)


SCHEMA: Tuple[FieldSpec, ...] = (
    # Hlavicka
    FieldSpec('uuid_zpravy', SECTION_HEADER, 'uuid_zpravy', FieldKind.IDENTIFIER, True,
              validate_uuid_v4, default=lambda: str(uuid.uuid4())),
    FieldSpec('dat_odesl', SECTION_HEADER, 'dat_odesl', FieldKind.TIMESTAMP, True,
              validate_datetime, default=lambda: datetime.now(timezone.utc)),
    FieldSpec('prvni_zaslani', SECTION_HEADER, 'prvni_zaslani', FieldKind.FLAG, True,
              validate_bool, default=lambda: True),
    FieldSpec('overeni', SECTION_HEADER, 'overeni', FieldKind.FLAG, True,
              validate_bool, default=lambda: False),
    # Data
    FieldSpec('dic_popl', SECTION_DATA, 'dic_popl', FieldKind.IDENTIFIER, True, validate_cz_vat_id),
    FieldSpec('dic_poverujiciho', SECTION_DATA, 'dic_poverujiciho', FieldKind.IDENTIFIER, False,
              validate_cz_vat_id),
    FieldSpec('id_provoz', SECTION_DATA, 'id_provoz', FieldKind.IDENTIFIER, True, validate_id_provoz),
    FieldSpec('id_pokl', SECTION_DATA, 'id_pokl', FieldKind.IDENTIFIER, True, validate_id_pokl),
    FieldSpec('porad_cis', SECTION_DATA, 'porad_cis', FieldKind.IDENTIFIER, True, validate_porad_cis),
    FieldSpec('dat_trzby', SECTION_DATA, 'dat_trzby', FieldKind.TIMESTAMP, True, validate_datetime),
    FieldSpec('celk_trzba', SECTION_DATA, 'celk_trzba', FieldKind.MONEY, True, validate_amount),
    _money('zakl_nepodl_dph'),
    _money('zakl_dan1'),
    _money('dan1'),
    _money('zakl_dan2'),
    _money('dan2'),
    _money('zakl_dan3'),
    _money('dan3'),
    _money('cest_sluz'),
    _money('pouzit_zboz1'),
    _money('pouzit_zboz2'),
    _money('pouzit_zboz3'),
    _money('urceno_cerp_zuct'),
    _money('cerp_zuct'),
    FieldSpec('rezim', SECTION_DATA, 'rezim', FieldKind.REGIME, True,
              validate_rezim, default=lambda: 0),
)

SCHEMA_KEYS = frozenset(spec.key for spec in SCHEMA)


def parse_request(record: Mapping[str, Any]) -> ParsedRequest:
    """
    Valida, completa y formatea los datos de una venta

    Args:
        record: Datos de la venta (claves como 'dic_popl', 'celk_trzba', ...)

    Returns:
        ParsedRequest con los mapas header y data en formato del protocolo

    Raises:
        RequestParsingError: Si falta un campo obligatorio o un valor es inválido
    """
    if not isinstance(record, Mapping):
        raise RequestParsingError(
            'Invalid request data given. Data must be a mapping.', record
        )

    unknown = set(record) - SCHEMA_KEYS
    if unknown:
        logger.debug(f"Campos desconocidos ignorados: {sorted(unknown)}")

    sections: Dict[str, Dict[str, str]] = {SECTION_HEADER: {}, SECTION_DATA: {}}

    for spec in SCHEMA:
        value = record.get(spec.key)

        if value is None and spec.default is not None:
            value = spec.default()

        if value is None:
            if spec.required:
                raise RequestParsingError(f"{spec.key} must be set.", record)
            continue

        if not spec.validate(value):
            raise RequestParsingError(
                f"Validation failed for {spec.key}. '{value}' given.", value
            )

        sections[spec.section][spec.wire_name] = spec.format(value)

    return ParsedRequest(header=sections[SECTION_HEADER], data=sections[SECTION_DATA])
