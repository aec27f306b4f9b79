# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import re
import socket
import socketserver
import ssl
import threading
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from ipaddress import IPv4Address
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from typekit import ClientConfiguration


class ScriptedStream:
    """
    An in-memory stream that replays a list of chunks.

    Chunks longer than the requested read size are split. Exceptions in the
    chunk list are raised when reached. The stream ends after the last chunk.
    Writes accept at most max_write bytes at a time.
    """

    def __init__(self, *chunks: bytes | Exception, max_write: int | None = None, write_error: Exception | None = None) -> None:
        self.chunks: deque[bytes | Exception] = deque(chunks)
        self.max_write = max_write
        self.write_error = write_error
        self.sent = bytearray()
        self.write_sizes: list[int] = []
        self.read_sizes: list[int] = []
        self.closed = False

    def send(self, data: bytes | memoryview, /) -> int:
        if self.write_error is not None:
            raise self.write_error
        accepted = bytes(data[:self.max_write] if self.max_write is not None else data)
        self.sent.extend(accepted)
        self.write_sizes.append(len(accepted))
        return len(accepted)

    def recv(self, size: int, /) -> bytes:
        self.read_sizes.append(size)
        if not self.chunks:
            return b''
        chunk = self.chunks.popleft()
        if isinstance(chunk, Exception):
            raise chunk
        if len(chunk) > size:
            self.chunks.appendleft(chunk[size:])
            chunk = chunk[:size]
        return chunk

    def close(self) -> None:
        self.closed = True


@dataclass(frozen=True)
class Certificates:
    authority_file: Path
    certificate_file: Path
    private_key_file: Path

    @classmethod
    def create(cls, directory: Path) -> 'Certificates':
        """Create a test CA and a server certificate for localhost and 127.0.0.1, issued by it"""
        now = datetime.now(UTC)
        ca_key = ec.generate_private_key(ec.SECP256R1())
        ca_name = x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, 'Typekit'), x509.NameAttribute(NameOID.COMMON_NAME, 'Test CA')])
        ca_certificate = (
            x509.CertificateBuilder()
            .subject_name(ca_name)
            .issuer_name(ca_name)
            .public_key(ca_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=5))
            .not_valid_after(now + timedelta(days=1))
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
            .add_extension(x509.KeyUsage(digital_signature=True, content_commitment=False, key_encipherment=False, data_encipherment=False, key_agreement=False, key_cert_sign=True, crl_sign=True, encipher_only=False, decipher_only=False), critical=True)
            .add_extension(x509.SubjectKeyIdentifier.from_public_key(ca_key.public_key()), critical=False)
            .sign(ca_key, hashes.SHA256())
        )
        server_key = ec.generate_private_key(ec.SECP256R1())
        server_certificate = (
            x509.CertificateBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, 'localhost')]))
            .issuer_name(ca_name)
            .public_key(server_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=5))
            .not_valid_after(now + timedelta(days=1))
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(x509.KeyUsage(digital_signature=True, content_commitment=False, key_encipherment=False, data_encipherment=False, key_agreement=False, key_cert_sign=False, crl_sign=False, encipher_only=False, decipher_only=False), critical=True)
            .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
            .add_extension(x509.SubjectAlternativeName([x509.DNSName('localhost'), x509.IPAddress(IPv4Address('127.0.0.1'))]), critical=False)
            .add_extension(x509.SubjectKeyIdentifier.from_public_key(server_key.public_key()), critical=False)
            .add_extension(x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()), critical=False)
            .sign(ca_key, hashes.SHA256())
        )
        certificates = cls(authority_file=directory / 'ca.pem', certificate_file=directory / 'server.pem', private_key_file=directory / 'server.key')
        certificates.authority_file.write_bytes(ca_certificate.public_bytes(Encoding.PEM))
        certificates.certificate_file.write_bytes(server_certificate.public_bytes(Encoding.PEM))
        certificates.private_key_file.write_bytes(server_key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()))
        return certificates


class StubHandler(socketserver.BaseRequestHandler):
    server: 'StubServer'

    def handle(self) -> None:
        data = b''
        while b'\r\n\r\n' not in data:
            if not (chunk := self.request.recv(1024)):
                return
            data += chunk
        head, _, body = data.partition(b'\r\n\r\n')
        length = int(match.group(1)) if (match := re.search(rb'\r\nContent-Length: (\d+)', head)) is not None else 0
        while len(body) < length:
            if not (chunk := self.request.recv(1024)):
                break
            body += chunk
        self.server.requests.append(head + b'\r\n\r\n' + body)
        response = self.server.responses.popleft() if self.server.responses else b'HTTP/1.1 500 Internal Server Error\r\nContent-Length: 0\r\n\r\n'
        if response is None:
            self.server.release.wait(10)  # keep the connection open without answering
        else:
            self.request.sendall(response)


class StubServer(socketserver.ThreadingTCPServer):
    """A TLS server that answers each connection with the next queued response (None means never answer)"""

    daemon_threads = True
    block_on_close = False

    def __init__(self, context: ssl.SSLContext) -> None:
        super().__init__(('127.0.0.1', 0), StubHandler)
        self.context = context
        self.requests: list[bytes] = []
        self.responses: deque[bytes | None] = deque()
        self.release = threading.Event()

    @property
    def port(self) -> int:
        return self.server_address[1]

    def get_request(self) -> tuple[socket.socket, object]:
        sock, address = super().get_request()
        sock.settimeout(10)
        return self.context.wrap_socket(sock, server_side=True), address


@pytest.fixture(scope='session')
def certificates(tmp_path_factory: pytest.TempPathFactory) -> Certificates:
    return Certificates.create(tmp_path_factory.mktemp('certificates'))


@pytest.fixture
def server(certificates: Certificates) -> Iterator[StubServer]:
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(certfile=certificates.certificate_file, keyfile=certificates.private_key_file)
    stub_server = StubServer(context)
    thread = threading.Thread(target=stub_server.serve_forever, kwargs={'poll_interval': 0.05}, daemon=True)
    thread.start()
    try:
        yield stub_server
    finally:
        stub_server.release.set()
        stub_server.shutdown()
        stub_server.server_close()
        thread.join(5)


@pytest.fixture
def configuration(server: StubServer, certificates: Certificates) -> ClientConfiguration:
    return ClientConfiguration(host='127.0.0.1', port=server.port, timeout=5, read_timeout=5, authority_file=certificates.authority_file)


@pytest.fixture
def scripted_stream() -> type[ScriptedStream]:
    return ScriptedStream
