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

import email.utils
import http
import logging
import mimetypes
import urllib.parse
from pathlib import Path
from typing import Optional

import aiofiles
from websockets.asyncio.server import ServerConnection
from websockets.datastructures import Headers
from websockets.http11 import Request, Response


class StaticFiles:
    """
    Serves the built web client over plain HTTP on the websocket port.

    Any GET that is not a websocket upgrade is answered from ``directory``;
    paths that do not name a file inside it get ``index`` so client-side
    routing keeps working.
    """

    def __init__(self, directory, index: str = "index.html"):
        self.directory = Path(directory).resolve()
        self.index = index

    async def process_request(self, connection: Optional[ServerConnection], request: Request) -> Optional[Response]:
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None

        path = self.resolve(request.path)
        if path is None:
            path = self.resolve("/" + self.index)
        if path is None:
            logging.debug(f"No static file for {request.path}")
            return self._response(http.HTTPStatus.NOT_FOUND, b"Not Found\n", "text/plain; charset=utf-8")

        async with aiofiles.open(path, "rb") as static_file:
            body = await static_file.read()
        content_type, _ = mimetypes.guess_type(path.name)
        logging.debug(f"Serving {path} for {request.path}")
        return self._response(http.HTTPStatus.OK, body, content_type or "application/octet-stream")

    def resolve(self, request_path: str) -> Optional[Path]:
        relative = urllib.parse.unquote(urllib.parse.urlsplit(request_path).path).lstrip("/")
        if not relative:
            relative = self.index
        candidate = (self.directory / relative).resolve()
        if not candidate.is_relative_to(self.directory):
            logging.warning(f"Refusing to serve {request_path!r} outside of {self.directory}")
            return None
        if not candidate.is_file():
            return None
        return candidate

    @staticmethod
    def _response(status: http.HTTPStatus, body: bytes, content_type: str) -> Response:
        headers = Headers()
        headers["Date"] = email.utils.formatdate(usegmt=True)
        headers["Connection"] = "close"
        headers["Content-Type"] = content_type
        headers["Content-Length"] = str(len(body))
        return Response(status.value, status.phrase, headers, body)
