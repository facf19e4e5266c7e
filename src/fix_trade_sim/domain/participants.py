"""Participants in a simulation session."""

from enum import Enum


class ParticipantRole(str, Enum):
    """The three desks a session participant can play.

    TradingContext
    --------------
    The trader sends orders and allocation instructions, the broker works
    the orders and answers allocations, and the custodian confirms
    settlement.
    """

    TRADER = "Trader"
    BROKER = "Broker"
    CUSTODIAN = "Custodian"
