"""Shared test fixtures for the relay."""

import asyncio
import json
import uuid

import pytest
from websockets.exceptions import ConnectionClosed


class FakeConnection:
    """Stands in for a websockets ServerConnection; records what is sent to it."""

    def __init__(self, incoming=None, block=False):
        self.id = uuid.uuid4()
        self.sent: list[dict] = []
        self.incoming = list(incoming or [])
        self.block = block
        self.closed = False
        self.close_code = None

    async def send(self, message):
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(json.loads(message))

    async def recv(self):
        if self.incoming:
            return self.incoming.pop(0)
        if self.block:
            await asyncio.Future()
        raise ConnectionClosed(None, None)

    async def close(self, code=1000, reason=""):
        self.closed = True
        self.close_code = code

    def events(self) -> list[str]:
        return [packet["event"] for packet in self.sent]


@pytest.fixture
def make_connection():
    return FakeConnection
