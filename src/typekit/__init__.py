# SPDX-FileCopyrightText: 2020-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from .__info__ import __version__
from .client import Typekit
from .configuration import ClientConfiguration, ConfigurationError

__all__ = 'Typekit', 'ClientConfiguration', 'ConfigurationError', '__version__'  # noqa: RUF022
