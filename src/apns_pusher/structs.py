"""Typed option bundles for the push client."""

from __future__ import annotations

import contextlib
import os
import ssl
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from apns_pusher.const import (
    APNS_CONN_IDLE_TIMEOUT,
    APNS_FEEDBACK_HOST,
    APNS_FEEDBACK_PORT,
    APNS_GATEWAY_HOST,
    APNS_GATEWAY_PORT,
)


class Credentials(BaseModel):
    """Client certificate material for the gateway.

    ``certificate`` holds PEM bytes. When ``private_key`` is None the key is
    expected in the same PEM blob, which is what
    ``openssl pkcs12 -in cert.p12 -out client-cert.pem -nodes -clcerts`` produces.
    """

    model_config = ConfigDict(frozen=True)

    certificate: bytes
    private_key: bytes | None = None
    passphrase: str | None = Field(default=None, repr=False)
    verify_server: bool = True

    @classmethod
    def from_files(
        cls,
        certificate_path: str | Path,
        key_path: str | Path | None = None,
        passphrase: str | None = None,
    ) -> Credentials:
        """Read PEM material from disk."""
        certificate = Path(certificate_path).read_bytes()
        private_key = Path(key_path).read_bytes() if key_path else None
        return cls(certificate=certificate, private_key=private_key, passphrase=passphrase)

    def build_ssl_context(self) -> ssl.SSLContext:
        """Create a client TLS context carrying this certificate.

        The ssl module only loads key material from files, so the PEM bytes are
        written to private temporary files that are removed once loaded.

        Raises:
            ssl.SSLError: Material rejected by the TLS layer
        """
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        if not self.verify_server:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        paths: list[str] = []
        try:
            cert_path = _write_private_temp(self.certificate)
            paths.append(cert_path)
            key_path = None
            if self.private_key is not None:
                key_path = _write_private_temp(self.private_key)
                paths.append(key_path)
            context.load_cert_chain(certfile=cert_path, keyfile=key_path, password=self.passphrase)
        finally:
            for path in paths:
                with contextlib.suppress(OSError):
                    os.unlink(path)
        return context


def _write_private_temp(data: bytes) -> str:
    fd, path = tempfile.mkstemp(prefix="apns-", suffix=".pem")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
    except OSError:
        with contextlib.suppress(OSError):
            os.unlink(path)
        raise
    return path


class PusherOptions(BaseModel):
    """Notification gateway settings."""

    host: str = APNS_GATEWAY_HOST
    port: int = APNS_GATEWAY_PORT
    cache_connections: bool = False
    idle_timeout: float = APNS_CONN_IDLE_TIMEOUT


class FeedbackerOptions(BaseModel):
    """Feedback service settings."""

    host: str = APNS_FEEDBACK_HOST
    port: int = APNS_FEEDBACK_PORT
