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
import dataclasses
import enum
import logging
from typing import Hashable, Optional

ConnectionId = Hashable

REJECTED_REASON = "already taken or invalid"


class Slot(enum.Enum):
    A = "clientA"
    B = "clientB"

    @property
    def opposite(self) -> "Slot":
        return Slot.B if self is Slot.A else Slot.A

    @classmethod
    def from_name(cls, name) -> Optional["Slot"]:
        if not isinstance(name, str):
            return None
        try:
            return cls(name)
        except ValueError:
            return None


@dataclasses.dataclass(frozen=True)
class RegistrationResult:
    success: bool
    slot: Optional[Slot] = None
    reason: Optional[str] = None

    @classmethod
    def accepted(cls, slot: Slot) -> "RegistrationResult":
        return cls(success=True, slot=slot)

    @classmethod
    def rejected(cls, reason: str = REJECTED_REASON) -> "RegistrationResult":
        return cls(success=False, reason=reason)


class ConnectionRegistry:
    """
    Two named slots, each either empty or held by one open connection.

    register/release/resolve_opposite all run under a single lock, so two peers
    racing for the same slot resolve first-writer-wins.
    """

    def __init__(self):
        self._slots: dict[Slot, Optional[ConnectionId]] = {slot: None for slot in Slot}
        self._lock = asyncio.Lock()

    def occupant(self, slot: Slot) -> Optional[ConnectionId]:
        return self._slots[slot]

    def slot_of(self, connection_id: ConnectionId) -> Optional[Slot]:
        for slot, occupant in self._slots.items():
            if occupant is not None and occupant == connection_id:
                return slot
        return None

    async def register(self, connection_id: ConnectionId, requested_name) -> RegistrationResult:
        slot = Slot.from_name(requested_name)
        async with self._lock:
            if slot is None:
                logging.debug(f"Rejected registration of {connection_id} as {requested_name!r}: unknown name")
                return RegistrationResult.rejected()
            if self._slots[slot] is not None:
                logging.debug(f"Rejected registration of {connection_id} as {slot.value}: slot held")
                return RegistrationResult.rejected()
            if self.slot_of(connection_id) is not None:
                # one slot per connection
                logging.debug(f"Rejected registration of {connection_id} as {slot.value}: already registered")
                return RegistrationResult.rejected()
            self._slots[slot] = connection_id
        return RegistrationResult.accepted(slot)

    async def release(self, connection_id: ConnectionId) -> Optional[Slot]:
        async with self._lock:
            slot = self.slot_of(connection_id)
            if slot is not None:
                self._slots[slot] = None
            return slot

    async def resolve_opposite(self, connection_id: ConnectionId) -> Optional[ConnectionId]:
        async with self._lock:
            slot = self.slot_of(connection_id)
            if slot is None:
                return None
            return self._slots[slot.opposite]
