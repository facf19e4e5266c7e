"""WebSocket connection registry for simulation sessions.

This module tracks the participants connected to each simulation session
and fans relay events out to them. A session typically has one trader,
one broker and one custodian, each in their own browser tab.

Notes
-----
Every frame sent follows this JSON structure::

    {
        "seq": <int>,              # Per-client sequence number
        "type": <str>,             # RelayMessageType value
        "timestamp": <ISO-8601>,   # Server timestamp
        "data": <dict>             # Payload
    }

Sequence numbers start at 1 for each connection so a client can spot a
missed frame. A client whose send fails is dropped from the registry.

TradingContext
--------------
On a real FIX network each counterparty holds its own session with its
own sequence numbers. The relay keeps that shape: numbering is per
participant, not per simulation session.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import WebSocket

from ...domain.participants import ParticipantRole
from .relay_messages import RelayEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientConnection:
    """Identity of one connected participant.

    Parameters
    ----------
    client_id : str
        Unique id of the connection
    session_id : str
        Simulation session joined
    username : str
        Display name
    role : ParticipantRole
        Trader, Broker or Custodian
    """

    client_id: str
    session_id: str
    username: str
    role: ParticipantRole

    def to_dict(self) -> dict:
        return {
            "client_id": self.client_id,
            "session_id": self.session_id,
            "username": self.username,
            "role": self.role.value,
        }


class ConnectionRegistry:
    """Manages session WebSocket connections and message broadcasting.

    Attributes
    ----------
    active_connections : Dict[str, WebSocket]
        Maps client_id to its WebSocket
    sequence_numbers : Dict[str, int]
        Last sequence number sent to each client
    clients : Dict[str, ClientConnection]
        Identity of each connected client
    _lock : asyncio.Lock
        Guards the three dictionaries

    Notes
    -----
    All public methods are coroutines and must be awaited. The lock is
    held while a frame is written so the sequence numbers a client sees
    always arrive in order.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self.active_connections: Dict[str, WebSocket] = {}
        self.sequence_numbers: Dict[str, int] = {}
        self.clients: Dict[str, ClientConnection] = {}
        self._lock = asyncio.Lock()

    async def connect(
        self, websocket: WebSocket, connection: ClientConnection
    ) -> bool:
        """Accept a WebSocket and register the participant.

        Parameters
        ----------
        websocket : WebSocket
            Connection to accept
        connection : ClientConnection
            Identity of the participant

        Returns
        -------
        bool
            True if the connection was accepted
        """
        async with self._lock:
            try:
                await websocket.accept()
            except Exception as e:
                logger.error(
                    f"Failed to accept WebSocket for {connection.client_id}: {e}"
                )
                return False

            self.active_connections[connection.client_id] = websocket
            self.sequence_numbers[connection.client_id] = 0
            self.clients[connection.client_id] = connection
            logger.info(
                f"{connection.role.value} {connection.username} joined "
                f"session {connection.session_id}"
            )
            return True

    async def disconnect(self, client_id: str) -> Optional[ClientConnection]:
        """Remove a client; safe to call more than once.

        Returns
        -------
        Optional[ClientConnection]
            The removed identity, or None if the client was not connected
        """
        async with self._lock:
            return self._remove(client_id)

    def _remove(self, client_id: str) -> Optional[ClientConnection]:
        self.active_connections.pop(client_id, None)
        self.sequence_numbers.pop(client_id, None)
        connection = self.clients.pop(client_id, None)
        if connection is not None:
            logger.info(
                f"{connection.username} left session {connection.session_id}"
            )
        return connection

    async def send_to_client(self, client_id: str, event: RelayEvent) -> bool:
        """Frame ``event`` and send it to one client.

        Returns
        -------
        bool
            True if the frame was written. A failed write drops the client.
        """
        async with self._lock:
            if client_id not in self.active_connections:
                return False

            self.sequence_numbers[client_id] += 1
            message = {
                "seq": self.sequence_numbers[client_id],
                "type": event.type.value,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "data": event.data,
            }

            websocket = self.active_connections[client_id]
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Failed to send to {client_id}: {e}")
                self._remove(client_id)
                return False
            return True

    async def broadcast(
        self,
        session_id: str,
        event: RelayEvent,
        exclude: Optional[str] = None,
    ) -> int:
        """Send ``event`` to every client in ``session_id``.

        Parameters
        ----------
        session_id : str
            Target session
        event : RelayEvent
            Payload to send
        exclude : Optional[str]
            Client id to skip, typically the sender

        Returns
        -------
        int
            Number of clients the frame reached
        """
        recipients = [
            client.client_id
            for client in await self.get_session_clients(session_id)
            if client.client_id != exclude
        ]
        delivered = 0
        for client_id in recipients:
            if await self.send_to_client(client_id, event):
                delivered += 1
        return delivered

    async def get_session_clients(self, session_id: str) -> List[ClientConnection]:
        """Clients currently connected to ``session_id``."""
        async with self._lock:
            return [
                client
                for client in self.clients.values()
                if client.session_id == session_id
            ]

    def is_connected(self, client_id: str) -> bool:
        return client_id in self.active_connections
