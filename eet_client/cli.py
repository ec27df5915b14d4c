"""
CLI para registrar una venta en EET

Uso:
    python -m eet_client send --dic CZ1212121218 --provoz 273 \\
        --pokladna /5546/RO24 --uctenka 0/6460/ZQ42 --castka 34113.00

    # Solo generar y verificar el envelope (sin red)
    python -m eet_client send ... --dry-run

Certificado: EET_P12_PATH/EET_P12_PASSWORD o EET_KEY_PATH/EET_CERT_PATH.

Códigos de salida: 0 confirmado, 2 recuperable (offline), 1 error.
"""
import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from .client import EetClient
from .config import EetConfig, get_eet_config
from .exceptions import EetClientError, RequestParsingError
from .models import Outcome

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_RECOVERABLE = 2


def _amount(value: str) -> int:
    """Convierte '34113.00' a centésimos (3411300)"""
    try:
        amount = Decimal(value.replace(",", "."))
        rounded = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Monto inválido: {value}")
    if not amount.is_finite():
        raise argparse.ArgumentTypeError(f"Monto inválido: {value}")
    if amount != rounded:
        raise argparse.ArgumentTypeError(f"Monto con más de dos decimales: {value}")
    return int(amount * 100)


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def _die(message: str) -> int:
    print(f"❌ {message}", file=sys.stderr)
    return EXIT_ERROR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eet_client",
        description="Registrar ventas en EET (OdeslaniTrzby v3).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Enviar una venta")
    send.add_argument(
        "--env",
        choices=[EetConfig.ENV_PLAYGROUND, EetConfig.ENV_PRODUCTION],
        default=None,
        help="Ambiente EET (default: EET_ENV o playground)",
    )
    send.add_argument("--dic", required=True, help="DIČ del contribuyente (dic_popl)")
    send.add_argument("--dic-poverujiciho", default=None, help="DIČ del contribuyente que delega")
    send.add_argument("--provoz", required=True, type=int, help="ID del establecimiento (id_provoz)")
    send.add_argument("--pokladna", required=True, help="ID de la caja (id_pokl)")
    send.add_argument("--uctenka", required=True, help="Número de recibo (porad_cis)")
    send.add_argument("--castka", required=True, type=_amount, help="Monto total, ej: 34113.00")
    send.add_argument("--rezim", type=int, choices=[0, 1], default=0, help="Régimen (0 normal, 1 simplificado)")
    send.add_argument("--overeni", action="store_true", help="Modo verificación (el servidor no registra)")
    send.add_argument("--opakovane", action="store_true", help="Reenvío (prvni_zaslani=false)")
    send.add_argument("--offline", action="store_true", help="Fallos de envío como resultado recuperable")
    send.add_argument("--timeout", type=float, default=None, help="Timeout en segundos (default: 2)")
    send.add_argument("--measure", action="store_true", help="Medir tiempo de respuesta")
    send.add_argument("--dry-run", action="store_true", help="Generar y verificar el envelope sin enviarlo")
    send.add_argument("--debug", action="store_true", help="Logs extra de debug")
    return parser


def _record_from_args(args: argparse.Namespace) -> dict:
    record = {
        "dic_popl": args.dic,
        "id_provoz": args.provoz,
        "id_pokl": args.pokladna,
        "porad_cis": args.uctenka,
        "dat_trzby": datetime.now(timezone.utc),
        "celk_trzba": args.castka,
        "rezim": args.rezim,
        "overeni": args.overeni,
        "prvni_zaslani": not args.opakovane,
    }
    if args.dic_poverujiciho:
        record["dic_poverujiciho"] = args.dic_poverujiciho
    return record


def _dry_run(client: EetClient, record: dict) -> int:
    request, codes, envelope = client.prepare(record)
    _print_json({
        "request": request.to_dict(),
        "pkp": codes.pkp,
        "bkp": codes.bkp,
        "signature_valid": client.signer.verify(envelope),
        "envelope": envelope,
    })
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Función principal del CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = get_eet_config(
            env=args.env,
            timeout=args.timeout,
            offline=args.offline or None,
            measure_response_time=args.measure or None,
        )
        client = EetClient(config)
    except (ValueError, EetClientError) as e:
        return _die(f"Error al configurar cliente EET: {e}")

    record = _record_from_args(args)

    with client:
        try:
            if args.dry_run:
                return _dry_run(client, record)
            result = client.submit(record)
        except RequestParsingError as e:
            return _die(f"Datos de la venta inválidos: {e}")

    _print_json(result.to_dict())

    if result.outcome is Outcome.OK:
        return EXIT_OK
    if result.outcome is Outcome.RECOVERABLE:
        return EXIT_RECOVERABLE
    return EXIT_ERROR
