# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import enum
import re
from typing import ClassVar

from typekit.messages import Response

from .exceptions import IncompleteResponseError, MalformedResponseError

__all__ = 'ParserState', 'ResponseBuffer'


class ParserState(enum.Enum):
    AwaitingHeaders = enum.auto()
    AwaitingBody = enum.auto()
    Complete = enum.auto()


class ResponseBuffer:
    """
    Incrementally assemble an HTTP/1.1 response from arbitrarily sized chunks.

    Data is accumulated until the end of the header block is found. Then the
    status line and the Content-Length header are parsed and the buffer keeps
    collecting body bytes until the declared length is reached. Responses that
    do not declare a Content-Length have no body and are complete as soon as
    the header block is. Anything received after the response is complete is
    discarded.
    """

    separator: ClassVar[bytes] = b'\r\n\r\n'

    _status_line: ClassVar[re.Pattern[bytes]] = re.compile(rb'HTTP/1\.1 (\d+)')
    _length_value: ClassVar[re.Pattern[bytes]] = re.compile(rb'[ \t]*(\d+)[ \t]*')

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._search_offset = 0
        self._state = ParserState.AwaitingHeaders
        self._status: int | None = None
        self._headers: tuple[tuple[str, str], ...] = ()
        self._content_length: int | None = None

    def __repr__(self) -> str:
        return f'<{self.__class__.__qualname__} state={self._state.name} buffered={len(self._buffer)}>'

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def state(self) -> ParserState:
        return self._state

    @property
    def complete(self) -> bool:
        return self._state is ParserState.Complete

    @property
    def response(self) -> Response:
        if self._state is not ParserState.Complete:
            raise IncompleteResponseError('The response is not complete yet')
        assert self._status is not None  # noqa: S101 (used by type checkers)
        body = bytes(self._buffer) if self._content_length is not None else None
        return Response(self._status, body, self._headers)

    def write(self, data: bytes | bytearray) -> None:
        match self._state:
            case ParserState.AwaitingHeaders:
                self._buffer.extend(data)
                position = self._buffer.find(self.separator, self._search_offset)
                if position == -1:
                    # the separator may straddle the boundary between this chunk and the next one
                    self._search_offset = max(0, len(self._buffer) - len(self.separator) + 1)
                    return
                header_block = bytes(self._buffer[:position])
                del self._buffer[:position + len(self.separator)]
                self._parse_headers(header_block)
                self._check_body()
            case ParserState.AwaitingBody:
                self._buffer.extend(data)
                self._check_body()
            case ParserState.Complete:
                pass

    def finish(self) -> Response:
        """Signal the end of the stream and return the response if it is complete"""
        match self._state:
            case ParserState.AwaitingHeaders:
                raise IncompleteResponseError('The stream ended before the end of the response headers')
            case ParserState.AwaitingBody:
                raise IncompleteResponseError(f'The stream ended after {len(self._buffer)} of the {self._content_length} bytes declared by Content-Length')
            case ParserState.Complete:
                return self.response

    def _parse_headers(self, header_block: bytes) -> None:
        status_line, *header_lines = header_block.split(b'\r\n')
        if (match := self._status_line.match(status_line)) is None:
            raise MalformedResponseError(f'Invalid response status line: {status_line[:80]!r}')
        headers = []
        for line in header_lines:
            name, separator, value = line.partition(b':')
            if not separator:
                continue
            headers.append((name.decode('latin-1'), value.strip().decode('latin-1')))
            if name == b'Content-Length' and self._content_length is None and (length := self._length_value.fullmatch(value)) is not None:
                self._content_length = int(length.group(1))
        self._status = int(match.group(1))
        self._headers = tuple(headers)

    def _check_body(self) -> None:
        if self._content_length is None:
            self._buffer.clear()
            self._state = ParserState.Complete
        elif len(self._buffer) >= self._content_length:
            del self._buffer[self._content_length:]
            self._state = ParserState.Complete
        else:
            self._state = ParserState.AwaitingBody
