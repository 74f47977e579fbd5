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
import logging
import os

from config import Config, ConfigurationLoadError
from logger import banner, setup_logging
from relay_manager import RelayManager
from server_data import ServerData
from static_files import StaticFiles
from websocket_server import WebsocketServer


class CallMe:

    def __init__(self, config):
        self._config = config
        self._data = ServerData()
        self._manager = RelayManager(self._data)
        self._static = None
        if "static" in self._config:
            self._static = StaticFiles(self._config["static"]["directory"], self._config["static"]["index"])
        self._websocket_server = WebsocketServer(self._config, self._data, self._manager, self._static)

    async def begin(self):
        logging.info("Starting Call Me Server")
        if self._static is None:
            logging.info("No static directory configured, serving websocket only")
        else:
            logging.info(f"Serving static files from {self._static.directory}")

        async with self._websocket_server:
            banner(self._websocket_server.host, self._websocket_server.port)
            try:
                logging.info("Ctrl^C to quit")
                await self._data.shutdown_event.wait()
            except asyncio.CancelledError:
                logging.info("Cancelled ...")
            except KeyboardInterrupt:
                logging.info("Cancelled ...")
            finally:
                logging.info("Stopping Server ...")
                self._data.shutdown_event.set()


async def main():
    logging.info("Starting call me ...")

    config = Config(
        os.environ.get("CALL_ME_CONFIG", "./config.toml"),
        os.environ.get("PORT"),
    )

    try:
        await config.initialize()
    except ConfigurationLoadError:
        logging.error("Could not load configuration. Exiting")
        return

    setup_logging(config.config["logging"]["level"])
    call_me = CallMe(config.config)
    await call_me.begin()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
