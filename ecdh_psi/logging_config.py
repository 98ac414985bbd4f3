# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Logging configuration for ecdh_psi.

The package is a library, so its loggers are silent by default (NullHandler on
the ``ecdh_psi`` root logger). Applications opt in:

    >>> import ecdh_psi
    >>> ecdh_psi.setup_logging(level="DEBUG")
    >>> # or send package logs through the application's own handlers
    >>> ecdh_psi.setup_logging(level="INFO", propagate=True)

Log records carry batch sizes and rejected entry indices only; key material
never reaches a log call.
"""

import logging
import sys
from typing import Any, Literal

ECDH_PSI_LOGGER_NAME = "ecdh_psi"

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    format: str | None = None,
    date_format: str | None = None,
    filename: str | None = None,
    stream: Any = None,  # type: ignore[type-arg]
    force: bool = False,
    propagate: bool = False,
) -> None:
    """
    Enable logging for ecdh_psi.

    Args:
        level: Log level name.
        format: Record format; defaults to DEFAULT_FORMAT.
        date_format: Timestamp format; defaults to DEFAULT_DATE_FORMAT.
        filename: Also write records to this file.
        stream: Stream for the console handler (default sys.stderr). Pass
                False to skip the console handler.
        force: Drop handlers installed by earlier calls first.
        propagate: Forward records to the parent loggers. With no filename
                   and no stream, only the level is set and the application's
                   handlers do the output.
    """
    logger = logging.getLogger(ECDH_PSI_LOGGER_NAME)

    log_level = getattr(logging, level.upper())
    logger.setLevel(log_level)

    # Library-mode NullHandlers are noise once records propagate
    if propagate and not force:
        for handler in logger.handlers[:]:
            if isinstance(handler, logging.NullHandler):
                logger.removeHandler(handler)

    if force:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

    logger.propagate = propagate

    if propagate and not filename and stream is None:
        return

    formatter = logging.Formatter(
        format or DEFAULT_FORMAT, datefmt=date_format or DEFAULT_DATE_FORMAT
    )

    handlers: list[logging.Handler] = []
    if stream is not False:
        handlers.append(logging.StreamHandler(stream or sys.stderr))
    if filename:
        handlers.append(logging.FileHandler(filename))

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def disable_logging() -> None:
    """Silence every ecdh_psi logger again."""
    logger = logging.getLogger(ECDH_PSI_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for an ecdh_psi module.

    Names outside the ``ecdh_psi`` hierarchy are nested under it, so
    ``get_logger("tools.bench")`` yields ``ecdh_psi.tools.bench``.

    Args:
        name: Usually ``__name__`` of the calling module.
    """
    if name != ECDH_PSI_LOGGER_NAME and not name.startswith(
        ECDH_PSI_LOGGER_NAME + "."
    ):
        name = f"{ECDH_PSI_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


# Library mode until the application calls setup_logging()
_root_logger = logging.getLogger(ECDH_PSI_LOGGER_NAME)
if not _root_logger.handlers:
    _root_logger.addHandler(logging.NullHandler())
    _root_logger.propagate = False
