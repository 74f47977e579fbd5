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

import asyncio
import json
import logging
from typing import Optional

import websockets
from websockets.asyncio.server import ServerConnection, serve

from relay_manager import RelayManager
from server_data import ServerData
from static_files import StaticFiles


class WebsocketServer:

    def __init__(self, config, data: ServerData, manager: RelayManager, static: Optional[StaticFiles] = None):
        self._config = config
        self._data = data
        self._manager = manager
        self._static = static
        self._websocket_server = None

    @property
    def host(self) -> str:
        return self._config["server"]["host"]

    @property
    def port(self) -> int:
        return int(self._config["server"]["port"])

    def _serve(self):
        origins = self._config["server"].get("origins") or None
        return serve(
            self.handler, self.host or None, self.port,
            origins=origins,
            process_request=self._static.process_request if self._static is not None else None,
        )

    async def handler(self, websocket: ServerConnection):
        await self._manager.connection_opened(websocket)
        shutdown_wait_task = asyncio.create_task(self._data.shutdown_event.wait())
        recv_task = None
        try:
            while True:
                recv_task = asyncio.create_task(websocket.recv())
                await asyncio.wait(
                    [recv_task, shutdown_wait_task],
                    return_when=asyncio.FIRST_COMPLETED
                )

                # shutdown case
                if self._data.shutdown_event.is_set():
                    recv_task.cancel()
                    await websocket.close(1001, "Server shutting down")
                    return

                message = recv_task.result()
                if isinstance(message, str):
                    await self._parse_message(websocket, message)
                else:
                    logging.debug(f"Ignoring binary message from {websocket.id}")
        except websockets.exceptions.ConnectionClosed:
            logging.debug(f"Websocket connection {websocket.id} closed")
        finally:
            shutdown_wait_task.cancel()
            if recv_task is not None:
                recv_task.cancel()
            await self._manager.connection_closed(websocket)

    async def _parse_message(self, websocket: ServerConnection, message: str):
        try:
            packet = json.loads(message)
        except json.JSONDecodeError as e:
            logging.warning(f"WebSocket sent non-JSON data; details:")
            logging.exception(e)
            return

        logging.debug(f"Received message: {packet}")
        if not isinstance(packet, dict) or ("id" not in packet) or ("event" not in packet):
            logging.warning(f"Malformed packet - no id or event")
            return
        await self._handle_packet(websocket, packet)

    async def _handle_packet(self, websocket: ServerConnection, packet: dict) -> None:
        packet_id = packet["id"]

        async def ack():
            await self._manager.send_to_connection(websocket.id, {
                "id": packet_id,
                "event": packet["event"],
            })

        await self._manager.on_event(websocket, packet["event"], packet.get("data"), ack=ack, packet_id=packet_id)

    async def __aenter__(self):
        logging.debug(f"Starting websocket server")
        self._websocket_server = self._serve()
        return await self._websocket_server.__aenter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._websocket_server is not None:
            logging.debug(f"Stopping websocket server")
            return await self._websocket_server.__aexit__(exc_type, exc_val, exc_tb)
