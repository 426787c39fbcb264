from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ShiftPolicy


class ShiftRepository(Protocol):
    def list_all(self) -> Sequence[ShiftPolicy]:
        raise NotImplementedError

    def get_by_id(self, shift_id: int) -> Optional[ShiftPolicy]:
        raise NotImplementedError
