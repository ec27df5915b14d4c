"""
Configuración para cliente EET
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .certificates import load_pem, load_pkcs12

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.lower() in ("1", "true", "yes")


class EetConfig:
    """Configuración del cliente EET por ambiente"""

    ENV_PLAYGROUND = "playground"
    ENV_PRODUCTION = "production"

    # Endpoints según EET_popis_rozhrani v3.1.1
    ENDPOINTS = {
        "playground": "https://pg.eet.cz:443/eet/services/EETServiceSOAP/v3",
        "production": "https://prod.eet.cz:443/eet/services/EETServiceSOAP/v3",
    }

    # Variables de entorno que sobrescriben el endpoint
    ENDPOINT_OVERRIDES = {
        "playground": "EET_PLAYGROUND_URL",
        "production": "EET_PRODUCTION_URL",
    }

    DEFAULT_TIMEOUT = 2.0

    def __init__(
        self,
        env: str = ENV_PLAYGROUND,
        timeout: Optional[float] = None,
        offline: Optional[bool] = None,
        measure_response_time: Optional[bool] = None,
        user_agent: Optional[str] = None,
        bkp_uppercase: bool = False,
    ):
        """
        Inicializa la configuración EET

        Los argumentos explícitos tienen prioridad sobre las variables de entorno.

        Args:
            env: Ambiente ('playground' o 'production')
            timeout: Timeout del POST en segundos (EET_TIMEOUT, default 2)
            offline: Modo offline: fallos de envío se devuelven como recuperables (EET_OFFLINE)
            measure_response_time: Medir el tiempo de respuesta en ms
            user_agent: Valor del header User-Agent (EET_USER_AGENT)
            bkp_uppercase: BKP en mayúsculas (compatibilidad)
        """
        if env not in [self.ENV_PLAYGROUND, self.ENV_PRODUCTION]:
            raise ValueError(
                f"Ambiente inválido: {env}. Debe ser 'playground' o 'production'"
            )

        self.env = env
        self.endpoint = os.getenv(self.ENDPOINT_OVERRIDES[env]) or self.ENDPOINTS[env]

        self.timeout = (
            float(timeout) if timeout is not None
            else float(os.getenv("EET_TIMEOUT", str(self.DEFAULT_TIMEOUT)))
        )
        if self.timeout <= 0:
            raise ValueError(f"Timeout inválido: {self.timeout}")

        self.offline = offline if offline is not None else _env_bool("EET_OFFLINE")
        self.measure_response_time = (
            measure_response_time if measure_response_time is not None
            else _env_bool("EET_MEASURE_RESPONSE_TIME")
        )
        self.user_agent = user_agent or os.getenv("EET_USER_AGENT") or None
        self.bkp_uppercase = bkp_uppercase

        # Material criptográfico: PKCS#12 (prioridad) o PEM separado
        self.p12_path = os.getenv("EET_P12_PATH") or None
        self.p12_password = os.getenv("EET_P12_PASSWORD", "")
        self.key_path = os.getenv("EET_KEY_PATH") or None
        self.cert_path = os.getenv("EET_CERT_PATH") or None
        self.key_password = os.getenv("EET_KEY_PASSWORD", "")

    @property
    def playground(self) -> bool:
        """True si el ambiente es de pruebas (el servidor responde test="true")"""
        return self.env == self.ENV_PLAYGROUND

    def load_key_material(self):
        """
        Carga clave privada y certificado según la configuración

        Returns:
            (clave privada RSA, certificado en PEM)

        Raises:
            ValueError: Si no hay material configurado
            CertificateError: Si no se puede cargar
        """
        if self.p12_path:
            return load_pkcs12(Path(self.p12_path), self.p12_password)

        if self.key_path and self.cert_path:
            return load_pem(Path(self.key_path), Path(self.cert_path), self.key_password)

        raise ValueError(
            "Falta el certificado del contribuyente. Opciones: "
            "1) export EET_P12_PATH=/ruta/al/certificado.p12 y EET_P12_PASSWORD=... "
            "2) export EET_KEY_PATH=... y EET_CERT_PATH=..."
        )


def get_eet_config(env: Optional[str] = None, **options) -> EetConfig:
    """
    Obtiene la configuración EET desde variables de entorno

    Args:
        env: Ambiente ('playground' o 'production'). Si None, usa EET_ENV

    Returns:
        Configuración EET
    """
    if env is None:
        env = os.getenv("EET_ENV", EetConfig.ENV_PLAYGROUND)

    return EetConfig(env, **options)
