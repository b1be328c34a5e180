"""Abstract repository for the persisted cart snapshot."""

from __future__ import annotations

from abc import ABC, abstractmethod

from cartsync.domain.model.snapshot import CartSnapshot


class CartSnapshotRepository(ABC):

    @abstractmethod
    def load(self) -> CartSnapshot | None:
        """Return the saved snapshot, or None if absent, expired or unreadable."""

    @abstractmethod
    def save(self, snapshot: CartSnapshot) -> None:
        """Overwrite the stored snapshot as a whole."""

    @abstractmethod
    def clear(self) -> None:
        """Forget the stored snapshot."""
