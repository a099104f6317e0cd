"""
Where pool configs come from.

A pool source lists the imported pools and hands out each pool's config
tree, refreshed on demand. The tree has the same shape libzfs gives
zpool_get_config(): a mapping with a "vdev_tree" whose nodes carry
"vdev_stats", "vdev_stats_ex", "scan_stats" and "children".

Refreshing can block for as long as the kernel wants when a pool is broken.
Nothing here retries or times out; a wedged collector is better killed from
outside than retried from inside.
"""
import json
import os
import shlex
import shutil
import subprocess
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping

from .errors import InitializationError, PoolListError, PoolRefreshError
from .settings import Settings


class PoolSource(ABC):

    @abstractmethod
    def pool_names(self) -> List[str]:
        """
        Names of the imported pools. Raises PoolListError.
        """

    @abstractmethod
    def refresh(self, name: str) -> None:
        """
        Re-read the stats of one pool. Raises PoolRefreshError.
        """

    @abstractmethod
    def config(self, name: str) -> Mapping:
        pass

    def close(self) -> None:
        pass


class SnapshotSource(PoolSource):
    """
    A source that loads all pool configs at once as a {name: config}
    document and keeps the latest copy of each.
    """

    def __init__(self):
        self._configs: Dict[str, Mapping] = {}

    @abstractmethod
    def load(self) -> Mapping:
        pass

    def _load_document(self) -> Mapping:
        document = self.load()
        if not isinstance(document, Mapping):
            raise ValueError(f"expected an object of pool configs, got {type(document).__name__}")
        return document

    def pool_names(self) -> List[str]:
        try:
            document = self._load_document()
        except (OSError, ValueError) as e:
            raise PoolListError(f"cannot list pools: {e}") from e
        self._configs = dict(document)
        return list(document)

    def refresh(self, name: str) -> None:
        try:
            document = self._load_document()
        except (OSError, ValueError) as e:
            raise PoolRefreshError(name, str(e)) from e
        if name not in document or not isinstance(document[name], Mapping):
            self._configs.pop(name, None)
            raise PoolRefreshError(name, "pool not found")
        self._configs[name] = document[name]

    def config(self, name: str) -> Mapping:
        return self._configs[name]


class JsonFileSource(SnapshotSource):

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def load(self) -> Mapping:
        with open(self.path) as f:
            return json.load(f)


class CommandSource(SnapshotSource):
    """
    Runs a command that prints the pool config document as JSON.
    """

    def __init__(self, command: List[str]):
        super().__init__()
        self.command = command

    def load(self) -> Mapping:
        try:
            result = subprocess.run(self.command, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise OSError(f"{' '.join(self.command)} exited with {e.returncode}: {stderr}") from e
        return json.loads(result.stdout)


def open_source(settings: Settings) -> PoolSource:
    if settings.source_file:
        if not os.path.exists(settings.source_file):
            raise InitializationError(f"cannot initialize pool source: {settings.source_file} does not exist")
        return JsonFileSource(settings.source_file)
    if settings.source_command:
        command = shlex.split(settings.source_command)
        if not command or shutil.which(command[0]) is None:
            raise InitializationError(f"cannot initialize pool source: command not found: {settings.source_command}")
        return CommandSource(command)
    raise InitializationError("cannot initialize pool source: no --source-file or --source-command given")
