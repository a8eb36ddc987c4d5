# storage.py
"""
Key-value stores used to persist spawner and target positions.

Two scopes mirror what a browser offers a canvas: a session store that lives
as long as the process, and a durable store backed by a JSON file. Values are
strings, and position lists are stored as JSON arrays of {x, y} objects
under one key per (canvas, registry) pair.
"""
import json
import logging
import os
from typing import Dict, List, Optional, Protocol, Sequence

from constants import LOCAL_STORAGE, SESSION_STORAGE, STORAGE_KEY_PREFIX
from exceptions import PersistenceFormatError
from geometry import Point

# --- Data Contracts ---
#
# KeyValueStore (protocol):
#   - get(key: str) -> Optional[str]
#   - set(key: str, value: str) -> None
#   - clear() -> None
#   MemoryStore additionally supports len(), the number of stored keys.
#
# encode_points(points) -> str / decode_points(value) -> List[Point]:
#   - Invariants: decode_points(encode_points(p)) == list(p).
#   - decode_points raises PersistenceFormatError for anything that is not a
#     JSON array of objects with numeric "x" and "y".


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self) -> None: ...


class MemoryStore:
    """Session-scoped store; its contents die with the process."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore:
    """
    Durable store that keeps every key in a single JSON object on disk.

    The file is read once on creation and rewritten on each mutation.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logging.warning(f"Storage file {self.path} could not be read ({e}). Starting empty.")
            return {}
        if not isinstance(data, dict):
            logging.warning(f"Storage file {self.path} does not hold an object. Starting empty.")
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._write()

    def clear(self) -> None:
        self._data.clear()
        self._write()
        logging.debug(f"Storage file {self.path} cleared.")


class StorageScopes:
    """The session and durable stores, addressed by configured storage type."""

    def __init__(self, session: KeyValueStore, durable: KeyValueStore) -> None:
        self.session = session
        self.durable = durable

    def for_type(self, storage_type: str) -> KeyValueStore:
        if storage_type == SESSION_STORAGE:
            return self.session
        if storage_type == LOCAL_STORAGE:
            return self.durable
        raise ValueError(f"Unknown storage type: {storage_type!r}")

    def lookup(self, key: str) -> Optional[str]:
        """Session value first, then the durable one."""
        value = self.session.get(key)
        if value is None:
            value = self.durable.get(key)
        return value

    def clear_all(self) -> None:
        self.session.clear()
        self.durable.clear()


def storage_key(canvas_id: str, collection: str) -> str:
    return f"{STORAGE_KEY_PREFIX}.{canvas_id}.{collection}"


def encode_points(points: Sequence[Point]) -> str:
    return json.dumps([point.to_dict() for point in points])


def decode_points(value: str) -> List[Point]:
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise PersistenceFormatError(f"Stored positions are not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise PersistenceFormatError(f"Stored positions must be a list, got {type(data).__name__}.")

    points = []
    for item in data:
        if not isinstance(item, dict):
            raise PersistenceFormatError(f"Stored position {item!r} is not an object.")
        x, y = item.get('x'), item.get('y')
        if isinstance(x, bool) or isinstance(y, bool) or not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
            raise PersistenceFormatError(f"Stored position {item!r} needs numeric x and y.")
        points.append(Point(float(x), float(y)))
    return points


class DirectoryDownloadSink:
    """Receives exported files by writing them into a directory."""

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def offer(self, filename: str, content: str) -> str:
        os.makedirs(self.directory, exist_ok=True)
        path = os.path.join(self.directory, filename)
        with open(path, 'w') as f:
            f.write(content)
        logging.info(f"Positions exported to {path}.")
        return path
