# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from typekit.configuration import ClientConfiguration
from typekit.link import ConnectionUnavailableError, ExchangeError, TLSLink
from typekit.messages import FormData, Request, Response

__all__ = 'Typekit', 'Success', 'Failure', 'Result'  # noqa: RUF022


log = logging.getLogger('typekit.client')


@dataclass(frozen=True)
class Success:
    response: Response

    @property
    def ok(self) -> bool:
        return self.response.status == 200


@dataclass(frozen=True)
class Failure:
    error: ExchangeError

    ok = False


type Result = Success | Failure


class Typekit:
    """
    Client for the Typekit kits API.

    Every operation uses its own connection. Operations never raise for
    network or protocol problems: anything other than a 200 response is
    reported as None (for operations that return data) or False.

        typekit = Typekit()
        kit = typekit.create({'name': 'Example', 'families': [{'id': 'gkmg'}], 'domains': ['*.example.com']}, token='xxxxx')
    """

    def __init__(self, configuration: ClientConfiguration | None = None) -> None:
        self.configuration = configuration if configuration is not None else ClientConfiguration()

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({self.configuration!r})'

    def list(self, token: str | None = None) -> Any:
        """Return all the kits, or None on failure"""
        return self._decode(self.perform(self._get(self.configuration.api_prefix, token=token)))

    def get(self, kit_id: str, token: str | None = None) -> Any:
        """Return a kit, or None on failure. Without a token, the published version of the kit is returned."""
        if token is not None:
            request = self._get(f'{self._kit_path(kit_id)}/', token=token)
        else:
            request = self._get(f'{self._kit_path(kit_id)}/published')
        return self._decode(self.perform(request))

    def create(self, data: FormData, token: str) -> Any:
        """Create a new kit and return its data, or None on failure"""
        return self._decode(self.perform(self._post(self.configuration.api_prefix, token=token, content=data)))

    def update(self, kit_id: str, data: FormData, token: str) -> Any:
        """Update an existing kit and return its data, or None on failure"""
        return self._decode(self.perform(self._post(self._kit_path(kit_id), token=token, content=data)))

    def remove(self, kit_id: str, token: str) -> bool:
        """Remove a kit and return True if it was removed"""
        return self.perform(self._delete(f'{self._kit_path(kit_id)}/', token=token)).ok

    def publish(self, kit_id: str, token: str) -> bool:
        """Publish a kit and return True if it was published"""
        return self.perform(self._post(f'{self._kit_path(kit_id)}/publish', token=token)).ok

    def perform(self, request: Request) -> Result:
        """
        Carry out one request/response cycle on a new connection.

        The request is serialized before connecting, so a request that
        cannot be encoded raises ValueError without touching the network.
        """
        data = request.to_wire()
        link = TLSLink.connect(self.configuration)
        if link is None:
            return Failure(ConnectionUnavailableError(f'Cannot connect to {self.configuration.host}:{self.configuration.port}'))
        with link:
            try:
                response = link.exchange(data)
            except ExchangeError as exc:
                log.debug('%s %s failed: %s', request.method, request.path, exc)
                return Failure(exc)
        log.debug('%s %s returned %d', request.method, request.path, response.status)
        return Success(response)

    def _kit_path(self, kit_id: str) -> str:
        return self.configuration.api_prefix + quote(kit_id, safe='')

    def _get(self, path: str, *, token: str | None = None) -> Request:
        return Request.get(path, host=self.configuration.host, port=self.configuration.port, token=token)

    def _post(self, path: str, *, token: str, content: FormData | None = None) -> Request:
        return Request.post(path, host=self.configuration.host, port=self.configuration.port, token=token, content=content)

    def _delete(self, path: str, *, token: str) -> Request:
        return Request.delete(path, host=self.configuration.host, port=self.configuration.port, token=token)

    @staticmethod
    def _decode(result: Result) -> Any:
        match result:
            case Success(response) if result.ok:
                try:
                    return response.json()
                except ValueError as exc:
                    log.debug('Cannot decode the response body: %s', exc)
                    return None
            case _:
                return None
