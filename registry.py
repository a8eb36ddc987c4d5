# registry.py
"""
Spawner and target registries for one canvas.

The registry owns two insertion-ordered lists of points and writes them
through to storage when the storage configuration asks for it. Particles hold
references to the live lists, so every mutation happens in place.
"""
import json
import logging
from typing import Iterable, List, Optional, Tuple

from configuration import StorageConfig, StorageFlags
from exceptions import PersistenceFormatError
from geometry import Point
from storage import StorageScopes, decode_points, encode_points, storage_key

# --- Data Contracts ---
#
# class PointRegistry:
#   - __init__(self, canvas_id, scopes=None, storage=None):
#     - Inputs:
#       - canvas_id: str, identity used in storage keys.
#       - scopes: StorageScopes or None. Without scopes nothing persists.
#       - storage: StorageConfig or None, selecting the store and the
#         write-through flags.
#
#   - add(collection, point, channel) -> None
#   - remove_at(collection, point) -> int
#     - Removes every entry equal to point, returns how many were removed.
#   - load(initial_spawners, initial_targets) -> None
#     - Persisted values win over initial positions.
#   - export() -> str
#     - JSON document {"spawners": [...], "targets": [...]}.

SPAWNERS = "spawners"
TARGETS = "targets"
COLLECTIONS = (SPAWNERS, TARGETS)

# Mutation channels. The API channel follows storeNewPositions, the listener
# channel follows storeListenersPositions.
CHANNEL_API = "api"
CHANNEL_LISTENER = "listener"


class PointRegistry:
    """
    Ordered spawner and target points with optional persistence.
    """
    def __init__(
        self,
        canvas_id: str,
        scopes: Optional[StorageScopes] = None,
        storage: Optional[StorageConfig] = None,
    ):
        self.canvas_id = canvas_id
        self.scopes = scopes
        self.storage = storage
        self.spawner_list: List[Point] = []
        self.target_list: List[Point] = []

    @property
    def spawners(self) -> Tuple[Point, ...]:
        return tuple(self.spawner_list)

    @property
    def targets(self) -> Tuple[Point, ...]:
        return tuple(self.target_list)

    def _list(self, collection: str) -> List[Point]:
        if collection == SPAWNERS:
            return self.spawner_list
        if collection == TARGETS:
            return self.target_list
        raise ValueError(f"Unknown collection: {collection!r}")

    def _flags(self, channel: str) -> Optional[StorageFlags]:
        if self.storage is None:
            return None
        if channel == CHANNEL_API:
            return self.storage.store_new_positions
        if channel == CHANNEL_LISTENER:
            return self.storage.store_listeners_positions
        raise ValueError(f"Unknown channel: {channel!r}")

    def _persist(self, collection: str, channel: str) -> None:
        flags = self._flags(channel)
        if self.scopes is None or flags is None or not getattr(flags, collection):
            return
        store = self.scopes.for_type(self.storage.storage_type)
        store.set(storage_key(self.canvas_id, collection), encode_points(self._list(collection)))
        logging.debug(
            f"Persisted {len(self._list(collection))} {collection} of canvas "
            f"'{self.canvas_id}' to {self.storage.storage_type}."
        )

    def load(self, initial_spawners: Iterable[Point] = (), initial_targets: Iterable[Point] = ()) -> None:
        """
        Restores both collections, preferring persisted values.

        A persisted value that cannot be decoded is ignored in favour of the
        initial positions.
        """
        for collection, initial in ((SPAWNERS, initial_spawners), (TARGETS, initial_targets)):
            points = list(initial)
            source = "initial positions"
            if self.scopes is not None:
                value = self.scopes.lookup(storage_key(self.canvas_id, collection))
                if value is not None:
                    try:
                        points = decode_points(value)
                        source = "storage"
                    except PersistenceFormatError as e:
                        logging.warning(
                            f"Ignoring stored {collection} of canvas '{self.canvas_id}': {e}. "
                            "Falling back to initial positions."
                        )
            self._list(collection)[:] = points
            logging.info(f"Loaded {len(points)} {collection} for canvas '{self.canvas_id}' from {source}.")

    def add(self, collection: str, point: Point, channel: str = CHANNEL_API) -> None:
        self._list(collection).append(Point(*point))
        self._persist(collection, channel)

    def remove_at(self, collection: str, point: Point) -> int:
        points = self._list(collection)
        kept = [p for p in points if not (p.x == point[0] and p.y == point[1])]
        removed = len(points) - len(kept)
        if removed:
            points[:] = kept
            self._persist(collection, CHANNEL_API)
        return removed

    def add_spawner(self, point: Point, channel: str = CHANNEL_API) -> None:
        self.add(SPAWNERS, point, channel)

    def add_target(self, point: Point, channel: str = CHANNEL_API) -> None:
        self.add(TARGETS, point, channel)

    def remove_spawner_at(self, point: Point) -> int:
        return self.remove_at(SPAWNERS, point)

    def remove_target_at(self, point: Point) -> int:
        return self.remove_at(TARGETS, point)

    def reset_storage(self) -> None:
        """Clears every storage scope, not just this canvas' keys."""
        if self.scopes is not None:
            self.scopes.clear_all()
            logging.info("All stored positions cleared.")

    def export(self) -> str:
        return json.dumps({
            SPAWNERS: [p.to_dict() for p in self.spawner_list],
            TARGETS: [p.to_dict() for p in self.target_list],
        }, indent=2)
