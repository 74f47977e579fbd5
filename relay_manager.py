"""
CallMe
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

import json
import logging
import random
from typing import Any, Awaitable, Callable, Optional

import websockets
from websockets.asyncio.server import ServerConnection

from registry import ConnectionId, RegistrationResult
from server_data import ServerData

Ack = Callable[[], Awaitable[None]]


class RelayManager:

    def __init__(self, data: ServerData):
        self._data = data

    async def connection_opened(self, connection: ServerConnection):
        self._data.connections[connection.id] = connection
        logging.info(f"Client connected: {connection.id}")

    async def connection_closed(self, connection: ServerConnection):
        self._data.connections.pop(connection.id, None)
        slot = await self._data.registry.release(connection.id)
        if slot is not None:
            logging.info(f"{slot.value} disconnected ({connection.id})")
        else:
            logging.debug(f"Unregistered client disconnected: {connection.id}")

    async def on_event(self, connection: ServerConnection, event: str, data: Any = None,
                       ack: Optional[Ack] = None, packet_id=None) -> None:
        if event == "register":
            await self.register(connection, data, packet_id)
        elif event == "ring":
            await self.ring(connection)
        elif event == "ping":
            if ack is not None:
                await ack()
        else:
            logging.debug(f"Ignoring unknown event {event!r} from {connection.id}")

    async def register(self, connection: ServerConnection, name, packet_id=None) -> RegistrationResult:
        result = await self._data.registry.register(connection.id, name)
        if result.success:
            logging.info(f"{result.slot.value} registered: {connection.id}")
            reply = {"name": result.slot.value, "success": True}
        else:
            reply = {"success": False, "message": f"Client name {result.reason}"}

        packet = {"event": "registered", "data": reply}
        if packet_id is not None:
            packet["id"] = packet_id
        await self.send_to_connection(connection.id, packet)
        return result

    async def ring(self, connection: ServerConnection) -> bool:
        logging.info(f"{connection.id} rang the bell")
        target = await self._data.registry.resolve_opposite(connection.id)
        if target is None:
            logging.debug(f"Nobody to ring for {connection.id}")
            return False
        return await self.send_to_connection(target, {"event": "bell-rung"})

    async def send_to_connection(self, connection_id: ConnectionId, packet: dict) -> bool:
        connection = self._data.connections.get(connection_id)
        if connection is None:
            logging.debug(f"Wanted to send {packet.get('event')!r} to closed connection {connection_id}")
            return False
        packet.setdefault("id", random.randint(5_000_000, 2_000_000_000))
        try:
            await connection.send(json.dumps(packet))
        except websockets.exceptions.ConnectionClosed:
            logging.debug(f"Connection {connection_id} closed while sending {packet.get('event')!r}")
            return False
        return True
