"""
Cliente EET: orquesta el envío de una venta

Flujo:
1. parse_request (errores siempre se propagan, nunca se envía nada)
2. PKP / BKP
3. soap:Body canónico
4. envelope firmado
5. POST al endpoint
6. interpretación y validación de la respuesta

Si el paso 5 o 6 falla y el modo offline está activo, el resultado es
RECOVERABLE: contiene PKP y BKP calculados localmente (para imprimir en
el recibo y reenviar después) pero nunca un FIK.
"""
import logging
import time
from typing import Any, Mapping, Optional, Tuple, Union

from .config import EetConfig, get_eet_config
from .crypto import KeyInput, generate_security_codes, load_private_key
from .exceptions import (
    ResponseParsingError,
    ResponseServerError,
    TransportError,
    WrongServerResponse,
)
from .models import EetResult, ExpectedResponse, Outcome, ParsedRequest, SecurityCodes
from .pipeline_logger import get_logger
from .response_parser import interpret_response
from .schema import parse_request
from .soap_client import SoapClient
from .xml_generator import serialize_soap_body
from .xml_signer import EnvelopeSigner

logger = logging.getLogger(__name__)

# Fallos de envío que el modo offline convierte en resultado recuperable
SUBMISSION_ERRORS = (
    TransportError,
    ResponseParsingError,
    WrongServerResponse,
    ResponseServerError,
)


class EetClient:
    """
    Cliente para el servicio OdeslaniTrzby

    Args:
        config: Configuración (ambiente, timeout, modo offline, ...)
        private_key: Clave privada RSA; si None se carga desde la configuración
        certificate: Certificado PEM; si None se carga desde la configuración
        transport: Objeto con post(envelope) -> HttpResponse (default: SoapClient)

    Raises:
        ValueError: Si se pasa solo uno de private_key / certificate
    """

    def __init__(
        self,
        config: EetConfig,
        private_key: Optional[KeyInput] = None,
        certificate: Optional[Union[str, bytes]] = None,
        transport: Any = None,
    ):
        self.config = config

        if (private_key is None) != (certificate is None):
            raise ValueError("private_key y certificate deben pasarse juntos")
        if private_key is None:
            private_key, certificate = config.load_key_material()

        self.private_key = load_private_key(private_key)
        self.signer = EnvelopeSigner(self.private_key, certificate)

        self._owns_transport = transport is None
        self._transport = transport
        self.pipeline = get_logger()

    @property
    def transport(self):
        # Se crea al primer envío: prepare() no necesita red
        if self._transport is None:
            self._transport = SoapClient(self.config)
        return self._transport

    def prepare(self, record: Mapping[str, Any]) -> Tuple[ParsedRequest, SecurityCodes, str]:
        """
        Valida la venta y genera el envelope firmado, sin enviarlo

        Returns:
            (request, códigos de seguridad, envelope firmado)

        Raises:
            RequestParsingError: Si los datos de la venta son inválidos
        """
        request = parse_request(record)
        codes = generate_security_codes(
            self.private_key, request.data, uppercase_bkp=self.config.bkp_uppercase
        )
        body = serialize_soap_body(request.header, request.data, codes)
        logger.debug(f"Envelope preparado para uuid_zpravy={request.uuid_zpravy}")
        return request, codes, self.signer.sign(body)

    def submit(self, record: Mapping[str, Any]) -> EetResult:
        """
        Envía una venta y devuelve el resultado sin lanzar por fallos de envío

        Returns:
            EetResult con outcome OK, RECOVERABLE (offline) o FATAL

        Raises:
            RequestParsingError: Si los datos de la venta son inválidos
        """
        request, codes, envelope = self.prepare(record)
        expected = ExpectedResponse(
            uuid_zpravy=request.uuid_zpravy,
            bkp=codes.bkp,
            playground=self.config.playground,
        )

        raw_response = None
        try:
            with self.pipeline.log_context(
                "odeslani_trzby",
                uuid_zpravy=request.uuid_zpravy,
                bkp=codes.bkp,
                env=self.config.env,
            ):
                started = time.perf_counter()
                http_response = self.transport.post(envelope)
                raw_response = http_response.text

                response_time = None
                if self.config.measure_response_time:
                    response_time = round((time.perf_counter() - started) * 1000, 3)

                confirmation = interpret_response(http_response.content, expected, response_time)
        except SUBMISSION_ERRORS as e:
            outcome = Outcome.RECOVERABLE if self.config.offline else Outcome.FATAL
            self.pipeline.warning(
                "Envío EET fallido",
                uuid_zpravy=request.uuid_zpravy,
                outcome=outcome.value,
                error_type=type(e).__name__,
            )
            return EetResult(
                outcome=outcome,
                request=request,
                codes=codes,
                error=e,
                raw_response=raw_response,
            )

        self.pipeline.info(
            "Venta registrada",
            uuid_zpravy=request.uuid_zpravy,
            fik=confirmation.fik,
            warnings=len(confirmation.warnings),
        )
        return EetResult(
            outcome=Outcome.OK,
            request=request,
            codes=codes,
            response=confirmation,
            raw_response=raw_response,
        )

    def send(self, record: Mapping[str, Any]) -> EetResult:
        """
        Envía una venta

        Returns:
            EetResult OK, o RECOVERABLE si el modo offline está activo

        Raises:
            RequestParsingError: Si los datos de la venta son inválidos
            EetClientError: El error del envío cuando el resultado es FATAL
        """
        result = self.submit(record)
        if result.outcome is Outcome.FATAL:
            raise result.error
        return result

    def close(self) -> None:
        if self._owns_transport and self._transport is not None:
            self._transport.close()
            self._transport = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def send_eet_request(
    record: Mapping[str, Any],
    config: Optional[EetConfig] = None,
    private_key: Optional[KeyInput] = None,
    certificate: Optional[Union[str, bytes]] = None,
    transport: Any = None,
    **options,
) -> EetResult:
    """
    Envía una venta con un cliente de un solo uso

    Args:
        record: Datos de la venta
        config: Configuración; si None se arma con get_eet_config(**options)
        private_key: Clave privada RSA (opcional, default: desde configuración)
        certificate: Certificado PEM (opcional, default: desde configuración)
        transport: Transporte alternativo (tests)
        **options: Opciones de EetConfig (env, timeout, offline, ...)

    Returns:
        EetResult
    """
    if config is None:
        config = get_eet_config(**options)

    with EetClient(config, private_key, certificate, transport=transport) as client:
        return client.send(record)
