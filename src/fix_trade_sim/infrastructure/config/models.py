"""Configuration data models.

This module defines the data structures for application configuration,
using dataclasses for type safety and clarity.
"""

from dataclasses import dataclass

from ...domain.fix.tags import MsgType


@dataclass
class FixConfig:
    """FIX codec configuration.

    Attributes
    ----------
    begin_string : str
        Protocol version written in tag 8. Default: ``FIX.4.4``.
    fallback_msg_type : MsgType
        Type assumed when a decoded message has no usable tag 35.
        Default: NewOrderSingle.
    """

    begin_string: str = "FIX.4.4"
    fallback_msg_type: MsgType = MsgType.NEW_ORDER_SINGLE


@dataclass
class AllocationConfig:
    """Allocation validation configuration.

    Attributes
    ----------
    percent_tolerance : float
        How far the Percent-method total may stray from 100 before the
        instruction is rejected. Default: 0.01.
    """

    percent_tolerance: float = 0.01


@dataclass
class ServerConfig:
    """HTTP server bind address."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class LoggingConfig:
    """Root logger configuration.

    Attributes
    ----------
    level : str
        Standard logging level name. Default: ``INFO``.
    format : str
        Format string passed to ``logging.basicConfig``.
    """

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
