# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

__all__ = 'TLSLink', 'Stream'  # noqa: RUF022


import logging
import os
import socket
import ssl
from functools import lru_cache
from typing import ClassVar, Protocol, Self

from typekit.configuration import ClientConfiguration
from typekit.messages import Response

from .common import ResponseBuffer
from .exceptions import ReceiveError, TransmissionError

log = logging.getLogger('typekit.link')


class Stream(Protocol):
    """The part of the socket interface used by a link"""

    def send(self, data: bytes, /) -> int: ...

    def recv(self, size: int, /) -> bytes: ...

    def close(self) -> None: ...


class TLSLink:
    """
    A single use TLS connection that carries one request and its response.

    A link is obtained with connect(), used for exactly one exchange() and
    then closed, preferably by using it as a context manager.
    """

    chunk_size: ClassVar[int] = 1024

    @classmethod
    def get_context(cls, authority_file: str | None = None) -> ssl.SSLContext:
        """Return the context for the authority file, which is reloaded when the file is modified (raises OSError if the file is missing)"""
        modified = os.stat(authority_file).st_mtime_ns if authority_file is not None else None  # noqa: PTH116
        return cls._create_context(authority_file, modified)

    @staticmethod
    @lru_cache
    def _create_context(authority_file: str | None, modified: int | None) -> ssl.SSLContext:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        if authority_file is not None:
            context.load_verify_locations(cafile=authority_file)
        return context

    def __init__(self, stream: Stream, *, debug: bool = False) -> None:
        self.debug = debug
        self._stream = stream
        self._closed = False

    def __repr__(self) -> str:
        return f'<{self.__class__.__qualname__} stream={self._stream!r} closed={self._closed}>'

    @property
    def closed(self) -> bool:
        return self._closed

    @classmethod
    def connect(cls, configuration: ClientConfiguration) -> Self | None:
        """Connect to the configured endpoint and return the link or None if the connection failed"""
        address = configuration.host, configuration.port
        try:
            context = cls.get_context(configuration.authority_file)
            sock = socket.create_connection(address, timeout=configuration.timeout)
        except (OSError, ValueError) as exc:
            log.debug('Cannot connect to %s:%d: %s', *address, exc)
            return None
        try:
            # the connect timeout is still in effect and also bounds the handshake
            tls_sock = context.wrap_socket(sock, server_hostname=configuration.host)
        except (OSError, ValueError) as exc:  # ssl.SSLError and ssl.CertificateError are OSError subclasses
            log.debug('TLS handshake with %s:%d failed: %s', *address, exc)
            sock.close()
            return None
        tls_sock.settimeout(configuration.read_timeout)
        log.debug('Connected to %s:%d using %s', *address, tls_sock.version())
        return cls(tls_sock, debug=configuration.debug)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.close()
        except OSError as exc:
            log.debug('Error while closing %r: %s', self, exc)

    def send(self, data: bytes) -> None:
        """Write all the data to the stream, resuming after short writes"""
        if self._closed:
            raise TransmissionError('The link is closed')
        if self.debug:
            log.debug('Sending request:\n%s', data.decode('latin-1'))
        view = memoryview(data)
        total = len(view)
        offset = 0
        while offset < total:
            offset += self._send_data(view[offset:])

    def receive(self) -> Response:
        """Read from the stream until a complete response is assembled"""
        if self._closed:
            raise ReceiveError('The link is closed')
        buffer = ResponseBuffer()
        while not buffer.complete:
            if not (data := self._read_data()):
                buffer.finish()  # the stream ended early, this raises IncompleteResponseError
            buffer.write(data)
        response = buffer.response
        if self.debug:
            log.debug('Received response: status=%d headers=%r body=%r', response.status, response.headers, response.body)
        return response

    def exchange(self, data: bytes) -> Response:
        self.send(data)
        return self.receive()

    def _read_data(self) -> bytes:
        try:
            return self._stream.recv(self.chunk_size)
        except OSError as exc:  # this includes timeouts (if a read timeout was configured)
            raise ReceiveError(f'Reading the response failed: {exc}') from exc

    def _send_data(self, data: memoryview) -> int:
        try:
            written = self._stream.send(data)
        except OSError as exc:
            raise TransmissionError(f'Writing the request failed: {exc}') from exc
        if written <= 0:
            raise TransmissionError('The connection did not accept any data')
        return written

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: object, exc_value: object, exc_traceback: object) -> None:
        self.close()
