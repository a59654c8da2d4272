"""Throwaway self-signed certificates for the local HTTPS server."""
from __future__ import annotations

import ipaddress
import os
import ssl
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

CERT_VALIDITY_DAYS = 30


def generate_self_signed_cert(
    common_name: str = "localhost",
    days: int = CERT_VALIDITY_DAYS,
    key_size: int = 2048,
) -> Tuple[bytes, bytes]:
    """Return (cert_pem, key_pem) for a fresh RSA key signed by itself."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)

    san = x509.SubjectAlternativeName([
        x509.DNSName(common_name),
        x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
    ])
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    # Backdate slightly so clock skew between us and the browser doesn't matter
    not_before = datetime.now(timezone.utc) - timedelta(minutes=5)
    not_after = not_before + timedelta(days=days)

    cert = (x509.CertificateBuilder()
            .subject_name(name).issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before).not_valid_after(not_after)
            .add_extension(san, critical=False)
            .sign(key, hashes.SHA256()))

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return cert_pem, key_pem


def server_context(cert_pem: bytes, key_pem: bytes) -> ssl.SSLContext:
    # ssl can only load a chain from files; they live only as long as this call
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    with tempfile.TemporaryDirectory() as td:
        cert_file = os.path.join(td, "cert.pem")
        key_file = os.path.join(td, "key.pem")
        with open(cert_file, "wb") as f:
            f.write(cert_pem)
        with open(key_file, "wb") as f:
            f.write(key_pem)
        ctx.load_cert_chain(cert_file, key_file)
    return ctx
