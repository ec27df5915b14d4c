"""
Firma WS-Security del envelope SOAP EET

Implementa un único perfil XML-DSig:
- Firma enveloped sobre soap:Body (Reference URI="#Body")
- Canonicalización C14N exclusiva
- RSA-SHA256 para la firma, SHA-256 para el digest
- Certificado X.509 embebido en wsse:BinarySecurityToken

No es una librería XML-DSig genérica: el body y SignedInfo se generan ya en
forma canónica, así que el digest y la firma se calculan directamente sobre
el texto que se envía.
"""
import base64
import logging
from typing import Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from lxml import etree

from .crypto import KeyInput, hash_sha256_base64, load_private_key, remove_pem_header, sign_sha256_base64
from .exceptions import EnvelopeVerificationError
from .xml_generator import BODY_ID, SOAP_NS

logger = logging.getLogger(__name__)

DS_NS = "http://www.w3.org/2000/09/xmldsig#"
WSSE_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"
WSU_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd"

C14N_EXCLUSIVE = "http://www.w3.org/2001/10/xml-exc-c14n#"
SIGNATURE_ALGORITHM = "http://www.w3.org/2001/04/xmldsig-more#rsa-sha256"
DIGEST_ALGORITHM = "http://www.w3.org/2001/04/xmlenc#sha256"
ENVELOPED_SIGNATURE = "http://www.w3.org/2000/09/xmldsig#enveloped-signature"
BASE64_ENCODING_TYPE = (
    "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-soap-message-security-1.0#Base64Binary"
)
X509_VALUE_TYPE = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-x509-token-profile-1.0#X509v3"
TOKEN_ID = "cert"


def serialize_signed_info(digest: str) -> str:
    """
    Genera SignedInfo en forma canónica

    Args:
        digest: SHA-256 del body en base64

    Returns:
        Elemento SignedInfo
    """
    return (
        f'<SignedInfo xmlns="{DS_NS}">'
        f'<CanonicalizationMethod Algorithm="{C14N_EXCLUSIVE}"></CanonicalizationMethod>'
        f'<SignatureMethod Algorithm="{SIGNATURE_ALGORITHM}"></SignatureMethod>'
        f'<Reference URI="#{BODY_ID}">'
        '<Transforms>'
        f'<Transform Algorithm="{ENVELOPED_SIGNATURE}"></Transform>'
        f'<Transform Algorithm="{C14N_EXCLUSIVE}"></Transform>'
        '</Transforms>'
        f'<DigestMethod Algorithm="{DIGEST_ALGORITHM}"></DigestMethod>'
        f'<DigestValue>{digest}</DigestValue>'
        '</Reference>'
        '</SignedInfo>'
    )


def serialize_soap_envelope(
    body: str,
    private_key: KeyInput,
    certificate: Union[str, bytes],
) -> str:
    """
    Genera el envelope SOAP completo con cabecera WS-Security

    Args:
        body: soap:Body ya serializado (se incluye sin modificar)
        private_key: Clave privada RSA del contribuyente
        certificate: Certificado del contribuyente en PEM

    Returns:
        soap:Envelope firmado
    """
    signed_info = serialize_signed_info(hash_sha256_base64(body))
    signature = sign_sha256_base64(private_key, signed_info)
    token = remove_pem_header(certificate)

    return (
        f'<soap:Envelope xmlns:soap="{SOAP_NS}">'
        '<soap:Header>'
        f'<wsse:Security xmlns:wsse="{WSSE_NS}" xmlns:wsu="{WSU_NS}" soap:mustUnderstand="1">'
        f'<wsse:BinarySecurityToken wsu:Id="{TOKEN_ID}" EncodingType="{BASE64_ENCODING_TYPE}" '
        f'ValueType="{X509_VALUE_TYPE}">{token}</wsse:BinarySecurityToken>'
        f'<Signature xmlns="{DS_NS}">'
        f'{signed_info}'
        f'<SignatureValue>{signature}</SignatureValue>'
        '<KeyInfo>'
        '<wsse:SecurityTokenReference>'
        f'<wsse:Reference URI="#{TOKEN_ID}" ValueType="{X509_VALUE_TYPE}"/>'
        '</wsse:SecurityTokenReference>'
        '</KeyInfo>'
        '</Signature>'
        '</wsse:Security>'
        '</soap:Header>'
        f'{body}'
        '</soap:Envelope>'
    )


class EnvelopeSigner:
    """
    Firma bodies SOAP con la clave y certificado del contribuyente
    """

    def __init__(self, private_key: KeyInput, certificate: Union[str, bytes]):
        self.private_key = load_private_key(private_key)
        self.certificate = certificate.decode('ascii') if isinstance(certificate, bytes) else certificate

    def sign(self, body: str) -> str:
        return serialize_soap_envelope(body, self.private_key, self.certificate)

    def verify(self, envelope: str) -> bool:
        """
        Verifica digest y firma de un envelope generado por este cliente

        Canonicaliza Body y SignedInfo con lxml (C14N exclusivo) y los compara
        contra DigestValue y SignatureValue usando la clave pública del
        BinarySecurityToken.

        Args:
            envelope: Envelope firmado

        Returns:
            True si digest y firma son válidos

        Raises:
            EnvelopeVerificationError: Si falta algún elemento de la firma
        """
        root = etree.fromstring(envelope.encode('utf-8'))

        body = root.find(f'{{{SOAP_NS}}}Body')
        signed_info = root.find(f'.//{{{DS_NS}}}SignedInfo')
        digest_value = root.find(f'.//{{{DS_NS}}}DigestValue')
        signature_value = root.find(f'.//{{{DS_NS}}}SignatureValue')
        token = root.find(f'.//{{{WSSE_NS}}}BinarySecurityToken')

        for name, node in (
            ('Body', body),
            ('SignedInfo', signed_info),
            ('DigestValue', digest_value),
            ('SignatureValue', signature_value),
            ('BinarySecurityToken', token),
        ):
            if node is None:
                raise EnvelopeVerificationError(f"Envelope does not contain {name}")

        body_c14n = etree.tostring(body, method='c14n', exclusive=True)
        if hash_sha256_base64(body_c14n) != (digest_value.text or '').strip():
            logger.warning("DigestValue no coincide con el Body canonicalizado")
            return False

        certificate = x509.load_der_x509_certificate(base64.b64decode(token.text))
        signed_info_c14n = etree.tostring(signed_info, method='c14n', exclusive=True)
        try:
            certificate.public_key().verify(
                base64.b64decode(signature_value.text),
                signed_info_c14n,
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
        except InvalidSignature:
            logger.warning("SignatureValue inválida para SignedInfo")
            return False

        return True
