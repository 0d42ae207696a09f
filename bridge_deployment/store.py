import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

STANDARD_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}


class KeyValueStore(ABC):
    """
    Minimal persistence interface used for deployment artifacts.

    Values must be JSON-serializable. Namespaces partition keys so that
    unrelated artifacts (deployment records, markers) do not share a listing.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def namespace(self, name: str) -> "KeyValueStore":
        raise NotImplementedError

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class JSONFileStore(KeyValueStore):
    """One JSON file per key inside a directory; namespaces are subdirectories."""

    SUFFIX = ".json"

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _filepath(self, key: str) -> Path:
        if not key or "/" in key or key.startswith("."):
            raise ValueError(f"Invalid store key '{key}'")
        return self.directory / f"{key}{self.SUFFIX}"

    def get(self, key: str) -> Optional[Any]:
        filepath = self._filepath(key)
        if not filepath.exists():
            return None
        with open(filepath, "r") as file:
            return json.load(file)

    def put(self, key: str, value: Any) -> None:
        filepath = self._filepath(key)
        self.directory.mkdir(parents=True, exist_ok=True)

        # write then rename so an interrupted run never leaves a truncated file
        temp_filepath = filepath.with_suffix(".temp.json")
        with open(temp_filepath, "w") as file:
            json.dump(value, file, **STANDARD_JSON_FORMAT)
        temp_filepath.replace(filepath)

    def keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(
            filepath.name[: -len(self.SUFFIX)]
            for filepath in self.directory.glob(f"*{self.SUFFIX}")
            if not filepath.name.endswith(".temp.json")
        )

    def namespace(self, name: str) -> "JSONFileStore":
        return JSONFileStore(self.directory / name)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.directory})"


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store; values are copied through JSON like the file store."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = data if data is not None else dict()

    def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        if value is None or isinstance(value, _Namespace):
            return None
        return json.loads(value)

    def put(self, key: str, value: Any) -> None:
        if isinstance(self._data.get(key), _Namespace):
            raise ValueError(f"Key '{key}' is a namespace")
        self._data[key] = json.dumps(value)

    def keys(self) -> List[str]:
        return sorted(k for k, v in self._data.items() if not isinstance(v, _Namespace))

    def namespace(self, name: str) -> "InMemoryStore":
        child = self._data.get(name)
        if child is None:
            child = self._data[name] = _Namespace()
        elif not isinstance(child, _Namespace):
            raise ValueError(f"Key '{name}' is not a namespace")
        return InMemoryStore(data=child)


class _Namespace(dict):
    pass
