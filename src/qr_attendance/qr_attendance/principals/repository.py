from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Principal


class PrincipalRepository(Protocol):
    """Read-only view over the principals the authentication layer manages.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: str) -> Optional[Principal]:
        raise NotImplementedError

    def list_students(self) -> Sequence[Principal]:
        raise NotImplementedError
