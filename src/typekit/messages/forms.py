# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from collections.abc import Iterator, Mapping, Sequence
from urllib.parse import quote_plus

__all__ = 'FormData', 'build_query'


type FormValue = str | bytes | int | float | bool | None | Mapping[str | int, FormValue] | Sequence[FormValue]
type FormData = Mapping[str | int, FormValue] | Sequence[FormValue]


def build_query(data: FormData) -> str:
    """
    Encode data as application/x-www-form-urlencoded content.

    Nested mappings and sequences are flattened using the bracket notation
    understood by the API (``families[0][id]=gkmg``), booleans are sent as
    1 or 0 and None values and empty containers are left out.
    """
    return '&'.join(f'{quote_plus(name, safe='')}={quote_plus(value, safe='')}' for name, value in _flatten(data))


def _flatten(data: FormData, prefix: str | None = None) -> Iterator[tuple[str, str | bytes]]:
    items = data.items() if isinstance(data, Mapping) else enumerate(data)
    for key, value in items:
        name = str(key) if prefix is None else f'{prefix}[{key}]'
        match value:
            case None:
                continue
            case bool():
                yield name, '1' if value else '0'
            case str() | bytes():
                yield name, value
            case int() | float():
                yield name, str(value)
            case Mapping() | Sequence():
                yield from _flatten(value, name)
            case _:
                raise TypeError(f'Cannot encode value of type {value.__class__.__qualname__!r} for {name!r}')
