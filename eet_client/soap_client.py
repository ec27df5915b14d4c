"""
Cliente SOAP 1.1 (raw) para el servicio EET OdeslaniTrzby

El envelope ya viene firmado: este módulo solo hace el POST HTTPS y valida
la respuesta a nivel de transporte (status, content-type, tamaño). El
contenido XML lo interpreta response_parser.
"""
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

import requests
from requests import Session

from .config import EetConfig
from .exceptions import ResponseSizeLimitError, TransportError, WrongServerResponse

logger = logging.getLogger(__name__)

SOAP_ACTION = '"http://fs.mfcr.cz/eet/OdeslaniTrzby"'
CONTENT_TYPE = "text/xml; charset=utf-8"

# Tamaño máximo de respuesta aceptado (en bytes)
MAX_RESPONSE_SIZE = 64 * 1024

XML_CONTENT_TYPES = ("text/xml", "application/xml", "application/soap+xml")


@dataclass(frozen=True)
class HttpResponse:
    """Respuesta HTTP ya validada a nivel de transporte"""
    status: int
    headers: Mapping[str, str]
    content: bytes
    elapsed: float  # segundos

    @property
    def text(self) -> str:
        """Vista de texto del cuerpo (solo para logs / debugging)"""
        return self.content.decode("utf-8", errors="replace")


def _is_xml_content_type(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in XML_CONTENT_TYPES


class SoapClient:
    """Cliente SOAP para EET sobre requests.Session"""

    def __init__(self, config: EetConfig, session: Optional[Session] = None):
        self.config = config
        self.url = config.endpoint
        self.timeout = config.timeout
        self.session = session or Session()

        self.session.headers.update({
            "Content-Type": CONTENT_TYPE,
            "SOAPAction": SOAP_ACTION,
        })
        if config.user_agent:
            self.session.headers["User-Agent"] = config.user_agent

    def _validate_size(self, size: int) -> None:
        if size > MAX_RESPONSE_SIZE:
            logger.error(f"Respuesta excede tamaño máximo: {size} > {MAX_RESPONSE_SIZE}")
            raise ResponseSizeLimitError(size, MAX_RESPONSE_SIZE)

    def _read_body(self, resp: requests.Response) -> bytes:
        """
        Lee el cuerpo de la respuesta sin pasar de MAX_RESPONSE_SIZE + 1 bytes

        Raises:
            ResponseSizeLimitError: Respuesta mayor a MAX_RESPONSE_SIZE
            TransportError: Conexión cortada durante la lectura
        """
        content_length = resp.headers.get("Content-Length")
        if content_length and content_length.isdigit():
            self._validate_size(int(content_length))

        body = bytearray()
        try:
            for chunk in resp.iter_content(chunk_size=8192):
                body.extend(chunk)
                if len(body) > MAX_RESPONSE_SIZE:
                    break
        except requests.RequestException as e:
            raise TransportError(f"Error leyendo respuesta de {self.url}: {e}") from e

        self._validate_size(len(body))
        return bytes(body)

    def post(self, envelope: Union[str, bytes]) -> HttpResponse:
        """
        Envía el envelope firmado al endpoint configurado

        Args:
            envelope: soap:Envelope firmado

        Returns:
            HttpResponse con el cuerpo de la respuesta

        Raises:
            TransportError: Error de red o timeout
            WrongServerResponse: Respuesta no XML o con status inesperado
            ResponseSizeLimitError: Respuesta mayor a MAX_RESPONSE_SIZE
        """
        soap_bytes = envelope.encode("utf-8") if isinstance(envelope, str) else envelope

        logger.info(f"Enviando SOAP a endpoint: {self.url}")
        started = time.perf_counter()
        try:
            resp = self.session.post(
                self.url,
                data=soap_bytes,
                timeout=self.timeout,
                stream=True,
            )
        except requests.Timeout as e:
            self._save_raw_soap_debug(soap_bytes, None)
            raise TransportError(f"Timeout ({self.timeout}s) al enviar a {self.url}") from e
        except requests.RequestException as e:
            self._save_raw_soap_debug(soap_bytes, None)
            raise TransportError(f"Error de conexión con {self.url}: {e}") from e

        try:
            content = self._read_body(resp)
        except (ResponseSizeLimitError, TransportError):
            self._save_raw_soap_debug(soap_bytes, None)
            raise
        finally:
            resp.close()
        elapsed = time.perf_counter() - started

        self._save_raw_soap_debug(soap_bytes, content)

        content_type = resp.headers.get("Content-Type")
        if not _is_xml_content_type(content_type):
            raise WrongServerResponse(
                f"HTTP {resp.status_code}: unexpected content type {content_type!r}"
            )

        if resp.status_code != 200:
            # SOAP Fault u otro error con cuerpo XML: lo interpreta el parser
            logger.warning(f"HTTP {resp.status_code} con cuerpo XML desde {self.url}")

        return HttpResponse(
            status=resp.status_code,
            headers=dict(resp.headers),
            content=content,
            elapsed=elapsed,
        )

    def _save_raw_soap_debug(
        self,
        soap_bytes: bytes,
        response_bytes: Optional[bytes] = None,
    ) -> None:
        """
        Guarda SOAP RAW enviado/recibido para debugging (EET_DEBUG_SOAP=1).

        Nunca interrumpe el envío: si falla, se loguea warning y se continúa.
        """
        debug_enabled = os.getenv("EET_DEBUG_SOAP", "0") in ("1", "true", "True")
        if not debug_enabled:
            return

        try:
            out_dir = Path(os.getenv("EET_ARTIFACTS_DIR", "artifacts"))
            out_dir.mkdir(parents=True, exist_ok=True)

            sent_file = out_dir / "soap_last_sent.xml"
            sent_file.write_bytes(soap_bytes)
            logger.debug(f"SOAP RAW enviado guardado en: {sent_file}")

            if response_bytes is not None:
                received_file = out_dir / "soap_last_received.xml"
                received_file.write_bytes(response_bytes)
                logger.debug(f"SOAP RAW recibido guardado en: {received_file}")
        except OSError as e:
            logger.warning(f"No se pudo guardar debug SOAP: {e}")

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
