"""
Conversión de valores de dominio a las codificaciones de texto del protocolo EET

Todas las funciones son puras. Las conversiones inversas (texto -> valor)
retornan None ante un valor mal formado en vez de lanzar excepción, para que
quien parsea la respuesta distinga "ausente" de "inválido".
"""
import re
from datetime import datetime, timezone
from typing import Any, Optional


UUID_V4_PATTERN = re.compile(
    r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$'
)
CZ_VAT_ID_PATTERN = re.compile(r'^CZ[0-9]{8,10}$')
STRING_20_PATTERN = re.compile(r'^[0-9a-zA-Z.,:;/#\-_ ]{1,20}$')
STRING_25_PATTERN = re.compile(r'^[0-9a-zA-Z.,:;/#\-_ ]{1,25}$')
FIK_PATTERN = re.compile(
    r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}-[0-9a-fA-F]{2}$'
)

# Montos en centésimos (haléře): -10^10 < monto < 10^10
AMOUNT_LIMIT = 10_000_000_000
ID_PROVOZ_LIMIT = 1_000_000


def format_datetime(value: datetime) -> str:
    """
    Convierte un datetime al formato de fecha del protocolo

    EET rechaza fracciones de segundo, por eso se descartan los microsegundos.
    Un datetime naive se interpreta como hora local.

    Args:
        value: Fecha/hora a convertir

    Returns:
        Fecha ISO 8601 en UTC, ej: '2016-08-04T22:30:12Z'
    """
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def format_bool(value: bool) -> str:
    """Convierte un booleano a 'true' / 'false'"""
    return 'true' if value else 'false'


def format_amount(hundredths: int) -> str:
    """
    Convierte un monto en centésimos a texto con exactamente dos decimales

    Usa aritmética entera para no perder precisión.

    Args:
        hundredths: Monto en centésimos (ej: -123456)

    Returns:
        Monto como texto (ej: '-1234.56')
    """
    sign = '-' if hundredths < 0 else ''
    units, cents = divmod(abs(hundredths), 100)
    return f"{sign}{units}.{cents:02d}"


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """Convierte 'true' / 'false' a booleano; cualquier otro valor retorna None"""
    if value == 'true':
        return True
    if value == 'false':
        return False
    return None


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Convierte una fecha ISO 8601 de la respuesta a datetime

    Args:
        value: Texto de la fecha (ej: '2020-03-05T19:56:02+01:00')

    Returns:
        datetime con zona horaria, o None si el valor falta o es inválido
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def is_integer(value: Any) -> bool:
    # bool es subclase de int y no es un monto válido
    return isinstance(value, int) and not isinstance(value, bool)


def validate_uuid_v4(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_V4_PATTERN.match(value))


def validate_cz_vat_id(value: Any) -> bool:
    return isinstance(value, str) and bool(CZ_VAT_ID_PATTERN.match(value))


def validate_id_provoz(value: Any) -> bool:
    return is_integer(value) and 0 < value < ID_PROVOZ_LIMIT


def validate_id_pokl(value: Any) -> bool:
    return isinstance(value, str) and bool(STRING_20_PATTERN.match(value))


def validate_porad_cis(value: Any) -> bool:
    return isinstance(value, str) and bool(STRING_25_PATTERN.match(value))


def validate_amount(value: Any) -> bool:
    return is_integer(value) and -AMOUNT_LIMIT < value < AMOUNT_LIMIT


def validate_rezim(value: Any) -> bool:
    return is_integer(value) and value in (0, 1)


def validate_bool(value: Any) -> bool:
    return isinstance(value, bool)


def validate_datetime(value: Any) -> bool:
    return isinstance(value, datetime)


def validate_fik(value: Any) -> bool:
    return isinstance(value, str) and bool(FIK_PATTERN.match(value))
