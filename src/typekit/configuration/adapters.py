# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from math import inf
from typing import Protocol

__all__ = 'DataAdapter', 'StringAdapter', 'BooleanAdapter', 'IntegerAdapter', 'PortAdapter', 'TimeoutAdapter', 'PathPrefixAdapter'  # noqa: RUF022


class DataAdapter[T](Protocol):
    """A protocol that describes how a configuration value is parsed from XML text"""

    @staticmethod
    def xml_parse(value: str, /) -> T:
        """Parse XML text into the data type"""
        ...


class StringAdapter:
    @staticmethod
    def xml_parse(value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('the value cannot be empty')
        return value


class BooleanAdapter:
    @staticmethod
    def xml_parse(value: str) -> bool:
        match value.strip():
            case 'true' | '1':
                return True
            case 'false' | '0':
                return False
            case _:
                raise ValueError(f'Invalid boolean value: {value!r}')


class IntegerAdapter:
    def __init_subclass__(cls, *, min_value: int | None = None, max_value: int | None = None, name: str = 'integer', **kw) -> None:  # noqa: ANN003
        super().__init_subclass__(**kw)

        lower_bound = min_value if min_value is not None else -inf
        upper_bound = max_value if max_value is not None else +inf

        def xml_parse(value: str) -> int:
            number = int(value)
            if lower_bound <= number <= upper_bound:
                return number
            raise ValueError(f"invalid value '{value}' for {name}")

        cls.xml_parse = staticmethod(xml_parse)  # type: ignore[method-assign]

    @staticmethod
    def xml_parse(value: str) -> int:
        return int(value)


class PortAdapter(IntegerAdapter, min_value=1, max_value=65535, name='port number'):
    pass


class TimeoutAdapter:
    @staticmethod
    def xml_parse(value: str) -> float:
        timeout = float(value)
        if timeout > 0:
            return timeout
        raise ValueError(f"invalid value '{value}' for timeout (must be a positive number of seconds)")


class PathPrefixAdapter:
    @staticmethod
    def xml_parse(value: str) -> str:
        value = value.strip()
        if not value.startswith('/'):
            raise ValueError(f"invalid value '{value}' for path prefix (must start with '/')")
        return value if value.endswith('/') else f'{value}/'
