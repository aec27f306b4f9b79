# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar, Self

import idna

from .forms import FormData, build_query

__all__ = 'Method', 'Request', 'Response', 'FormData', 'build_query'  # noqa: RUF022


class Method(StrEnum):
    GET = 'GET'
    POST = 'POST'
    DELETE = 'DELETE'


@dataclass(frozen=True, kw_only=True)
class Request:
    """An HTTP/1.1 request for the kits API, serialized in full by to_wire()"""

    default_port: ClassVar[int] = 443

    method: Method
    path: str
    host: str
    port: int = default_port
    token: str | None = None
    content: FormData | None = None

    def __post_init__(self) -> None:
        if not self.path.startswith('/'):
            raise ValueError(f'The request path must be absolute: {self.path!r}')
        for name in ('path', 'token'):
            value = getattr(self, name)
            if value is not None and not all('!' <= char <= '~' for char in value):  # visible ASCII only
                raise ValueError(f'The request {name} contains invalid characters: {value!r}')
        if not self.host.isprintable() or ' ' in self.host:  # non-ASCII is allowed here, it is IDNA encoded in the Host header
            raise ValueError(f'The request host contains invalid characters: {self.host!r}')
        if self.content is not None and self.method is not Method.POST:
            raise ValueError(f'A {self.method} request cannot have content')

    @classmethod
    def get(cls, path: str, *, host: str, port: int = default_port, token: str | None = None) -> Self:
        return cls(method=Method.GET, path=path, host=host, port=port, token=token)

    @classmethod
    def post(cls, path: str, *, host: str, port: int = default_port, token: str | None = None, content: FormData | None = None) -> Self:
        return cls(method=Method.POST, path=path, host=host, port=port, token=token, content=content)

    @classmethod
    def delete(cls, path: str, *, host: str, port: int = default_port, token: str | None = None) -> Self:
        return cls(method=Method.DELETE, path=path, host=host, port=port, token=token)

    @property
    def authority(self) -> str:
        host = self.host if self.host.isascii() else idna.encode(self.host, uts46=True).decode('ascii')
        return host if self.port == self.default_port else f'{host}:{self.port}'

    def to_wire(self) -> bytes:
        lines = [f'{self.method} {self.path} HTTP/1.1', f'Host: {self.authority}']
        if self.method is not Method.DELETE:
            lines.append('Accept: application/json')
        if self.token is not None:
            lines.append(f'X-Typekit-Token: {self.token}')
        if self.content is not None:
            body = build_query(self.content).encode('ascii')
            lines.append('Content-Type: application/x-www-form-urlencoded')
            lines.append(f'Content-Length: {len(body)}')
        else:
            body = b''
        return '\r\n'.join(lines).encode('ascii') + b'\r\n\r\n' + body


@dataclass(frozen=True)
class Response:
    status: int
    body: bytes | None = None
    headers: tuple[tuple[str, str], ...] = field(default=(), repr=False, compare=False)

    def json(self) -> Any:
        """Decode the body as JSON (raises ValueError if there is no body or it is not valid JSON)"""
        if self.body is None:
            raise ValueError('The response has no body')
        return json.loads(self.body.decode('utf-8'))
