import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from .config import Rule, Settings
from .routing import RouteTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time view of the rules; held by a request for its whole life."""
    rules: tuple[Rule, ...]
    table: RouteTable
    default_endpoint: str

    @classmethod
    def from_settings(cls, settings: Settings) -> 'Snapshot':
        rules = tuple(settings.endpoints)
        return cls(rules, RouteTable.build(rules), settings.default_endpoint)


class Registry:
    """
    Current rule set plus its route table, swapped as one unit.

    Readers call read() and keep the returned Snapshot; they never wait on
    anything. Writers are serialized by a lock that readers never touch, and
    the new Snapshot is only published once the store has accepted it.
    """
    def __init__(self, settings: Settings, store):
        self.store = store
        self._snapshot = Snapshot.from_settings(settings)
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_store(cls, store) -> 'Registry':
        return cls(store.load(), store)

    def read(self) -> Snapshot:
        return self._snapshot

    async def replace(self, new_rules: Sequence[Rule]) -> Snapshot:
        """
        Build, persist, then publish the new rule set.
        :raises PersistenceError: the store rejected the write; nothing changed.
        """
        async with self._write_lock:
            current = self._snapshot
            rules = tuple(new_rules)
            table = RouteTable.build(rules)

            await self.store.save(Settings(
                default_endpoint=current.default_endpoint,
                endpoints=list(rules),
            ))

            snapshot = Snapshot(rules, table, current.default_endpoint)
            self._snapshot = snapshot

        logger.info('Published %d endpoints (%d distinct paths)', len(rules), len(table))
        return snapshot
