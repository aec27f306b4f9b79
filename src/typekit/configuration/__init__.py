# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from dataclasses import dataclass
from os import PathLike
from os.path import expanduser, realpath
from pathlib import Path
from typing import ClassVar, Self

from lxml import etree

from .adapters import BooleanAdapter, DataAdapter, PathPrefixAdapter, PortAdapter, StringAdapter, TimeoutAdapter

__all__ = 'ClientConfiguration', 'ConfigurationError'


# noinspection PyProtectedMember
type ETreeElement = etree._Element  # noqa: SLF001


class ConfigurationError(ValueError):
    pass


class OptionalPathAttribute:
    name: str = NotImplemented

    def __set_name__(self, owner: type, name: str) -> None:
        if self.name is NotImplemented:
            self.name = name
        elif name != self.name:
            raise TypeError(f'cannot assign the same {self.__class__.__name__} to two different names: {self.name} and {name}')

    def __get__(self, instance: object | None, owner: type | None = None) -> str | None:
        if instance is None:
            return None  # this is used by dataclass as the field default
        return instance.__dict__[self.name]

    def __set__(self, instance: object, value: str | PathLike[str] | None) -> None:
        instance.__dict__[self.name] = realpath(expanduser(value)) if value is not None else None  # noqa: PTH111


@dataclass(frozen=True, kw_only=True)
class ClientConfiguration:
    """
    The settings used to reach the API endpoint.

    The defaults describe the public Typekit API. Tests and alternative
    deployments can point the client to a different endpoint by providing
    their own configuration, either directly or from an XML document:

        <typekit-client>
          <host>localhost</host>
          <port>8443</port>
          <read-timeout>5</read-timeout>
          <authority-file>~/.typekit/ca.pem</authority-file>
        </typekit-client>
    """

    root_tag: ClassVar[str] = 'typekit-client'

    host: str = 'typekit.com'
    port: int = 443
    api_prefix: str = '/api/v1/json/kits/'
    timeout: float = 30
    read_timeout: float | None = None
    authority_file: OptionalPathAttribute = OptionalPathAttribute()
    debug: bool = False

    _elements_: ClassVar[dict[str, tuple[str, type[DataAdapter]]]] = {
        'host': ('host', StringAdapter),
        'port': ('port', PortAdapter),
        'api-prefix': ('api_prefix', PathPrefixAdapter),
        'timeout': ('timeout', TimeoutAdapter),
        'read-timeout': ('read_timeout', TimeoutAdapter),
        'authority-file': ('authority_file', StringAdapter),
        'debug': ('debug', BooleanAdapter),
    }

    def __post_init__(self) -> None:
        if not self.host:
            raise ConfigurationError('The host cannot be empty')
        if not 0 < self.port < 65536:
            raise ConfigurationError(f'Invalid port number: {self.port}')
        if not (self.api_prefix.startswith('/') and self.api_prefix.endswith('/')):
            raise ConfigurationError(f"The API prefix must start and end with '/': {self.api_prefix!r}")
        if not all('!' <= char <= '~' for char in self.api_prefix):
            raise ConfigurationError(f'The API prefix must only contain visible ASCII characters: {self.api_prefix!r}')
        if self.timeout <= 0:
            raise ConfigurationError(f'The connect timeout must be a positive number of seconds: {self.timeout!r}')
        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ConfigurationError(f'The read timeout must be a positive number of seconds or None: {self.read_timeout!r}')

    @classmethod
    def from_string(cls, document: str | bytes) -> Self:
        try:
            element = etree.fromstring(document)
        except (etree.XMLSyntaxError, ValueError) as exc:
            raise ConfigurationError(f'Invalid configuration document: {exc}') from exc
        return cls.from_element(element)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> Self:
        try:
            document = etree.parse(str(Path(path).expanduser()))
        except (OSError, etree.XMLSyntaxError) as exc:
            raise ConfigurationError(f'Cannot load the configuration from {str(path)!r}: {exc}') from exc
        return cls.from_element(document.getroot())

    @classmethod
    def from_element(cls, element: ETreeElement) -> Self:
        if element.tag != cls.root_tag:
            raise ConfigurationError(f'The configuration root element must be {cls.root_tag!r}, not {element.tag!r}')
        values: dict[str, object] = {}
        for child in element:
            if not isinstance(child.tag, str):  # comments and processing instructions
                continue
            try:
                name, adapter = cls._elements_[child.tag]
            except KeyError:
                raise ConfigurationError(f'Unknown configuration element: {child.tag!r}') from None
            if name in values:
                raise ConfigurationError(f'Duplicate configuration element: {child.tag!r}')
            try:
                values[name] = adapter.xml_parse(child.text or '')
            except ValueError as exc:
                raise ConfigurationError(f'Invalid value for {child.tag!r}: {exc}') from exc
        return cls(**values)  # type: ignore[arg-type]
