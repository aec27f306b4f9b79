# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later


__all__ = 'ExchangeError', 'ConnectionUnavailableError', 'TransmissionError', 'ReceiveError', 'IncompleteResponseError', 'MalformedResponseError'  # noqa: RUF022


class ExchangeError(Exception):
    """Base class for all the errors that can end a request/response cycle."""


class ConnectionUnavailableError(ExchangeError):
    """
    Raised when a connection to the API endpoint could not be established.

    Name resolution failures, refused connections, TLS handshake errors and
    connect timeouts are all reported with this error. The underlying cause
    is not available to the caller.

    """


class TransmissionError(ExchangeError):
    """
    Raised when writing the request to the connection fails.

    A short write is not an error, only a write that fails outright or that
    is not able to accept any data. This exception's ``__cause__`` attribute
    will often contain the underlying :exc:`OSError`.

    """


class ReceiveError(ExchangeError):
    """
    Raised when reading the response from the connection fails.

    This covers errors reported by the stream itself (for example a reset
    connection or an expired read timeout), not a stream that ended early,
    which is reported with :exc:`IncompleteResponseError`.

    """


class IncompleteResponseError(ExchangeError):
    """
    Raised when the stream ends before the response is complete.

    That is either before the end of the header block was seen, or before
    all the body bytes declared by the ``Content-Length`` header arrived.

    """


class MalformedResponseError(ExchangeError):
    """Raised when the response status line cannot be parsed."""
