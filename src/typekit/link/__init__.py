# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from .common import ParserState, ResponseBuffer
from .exceptions import ConnectionUnavailableError, ExchangeError, IncompleteResponseError, MalformedResponseError, ReceiveError, TransmissionError
from .tls import Stream, TLSLink

__all__ = 'TLSLink', 'Stream', 'ResponseBuffer', 'ParserState', 'ExchangeError', 'ConnectionUnavailableError', 'TransmissionError', 'ReceiveError', 'IncompleteResponseError', 'MalformedResponseError'  # noqa: RUF022
