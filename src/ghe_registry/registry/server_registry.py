"""
Server Registry implementation.

The Server Registry holds the GitHub Enterprise servers known to the service,
keyed by the SHA-256 of their API URL. It can be backed by a JSON file, which
is rewritten after every change, or kept purely in memory (tests).
"""

import json
import logging
import threading
from pathlib import Path

from pydantic import ValidationError

from ghe_registry.registry.models import FieldError, ServerRecord, server_id_for
from ghe_registry.registry.validation import find_conflicts

logger = logging.getLogger(__name__)


class DuplicateServerError(Exception):
    """Raised when a server collides with an existing name or API URL."""

    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__("; ".join(error.message for error in errors))
        self.errors = errors


class ServerRegistry:
    """Registry of GitHub Enterprise servers.

    Records are kept in insertion order. The uniqueness check and the insert in
    ``create`` run under a single lock so concurrent creates cannot both pass.

    Example registry file:
    [
        {"name": "Corp GHE", "apiUrl": "https://github.corp.example/api/v3"}
    ]
    """

    def __init__(self, registry_path: str | None = None) -> None:
        """Initialize the Server Registry.

        Args:
            registry_path: Path to the JSON file backing the registry.
                          If None, the registry lives only in memory.
        """
        self._servers: dict[str, ServerRecord] = {}
        self._registry_path = registry_path
        self._lock = threading.Lock()

        if registry_path:
            self._load_from_file(registry_path)

    def _load_from_file(self, path: str) -> None:
        """Load registry data from a JSON file.

        The registry is left empty if the file cannot be read or any entry is
        malformed. Entries that reuse an earlier name or API URL are skipped.

        Args:
            path: Path to the JSON file.
        """
        file_path = Path(path)
        if not file_path.exists():
            logger.warning(f"Server registry file not found: {path}")
            return

        try:
            with open(file_path, encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, list):
                logger.error(f"Server registry file must hold a JSON array: {path}")
                return

            servers: dict[str, ServerRecord] = {}
            for entry in data:
                record = ServerRecord.model_validate(entry)
                conflicts = find_conflicts(
                    _find_by_name(servers, record.name),
                    servers.get(record.id),
                )
                if conflicts:
                    logger.warning(
                        f"Skipping registry entry {record.name} ({record.api_url}): "
                        + "; ".join(error.message for error in conflicts)
                    )
                    continue
                servers[record.id] = record
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse server registry JSON: {e}")
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error(f"Failed to load server registry: {e}")
        else:
            self._servers = servers
            logger.info(f"Loaded {len(self._servers)} servers from registry")

    def find_by_name(self, name: str) -> ServerRecord | None:
        """Return the server registered under ``name``, if any."""
        return _find_by_name(self._servers, name)

    def find_by_api_url(self, api_url: str) -> ServerRecord | None:
        """Return the server registered for ``api_url``, if any."""
        return self._servers.get(server_id_for(api_url))

    def create(self, name: str, api_url: str) -> ServerRecord:
        """Register a new server.

        The registry file is written before the record becomes visible, so a
        failed save leaves the registry unchanged.

        Args:
            name: Display name of the server.
            api_url: API root URL of the server.

        Returns:
            The stored record.

        Raises:
            DuplicateServerError: If the name or API URL is already registered.
            OSError: If the registry file cannot be written.
        """
        with self._lock:
            errors = find_conflicts(self.find_by_name(name), self.find_by_api_url(api_url))
            if errors:
                raise DuplicateServerError(errors)

            record = ServerRecord(name=name, api_url=api_url)
            servers = {**self._servers, record.id: record}
            self._autosave(servers)
            self._servers = servers

        logger.info(f"Registered server: {name} ({api_url})")
        return record

    def get_server(self, server_id: str) -> ServerRecord | None:
        """Get a server by id.

        Args:
            server_id: SHA-256 hex digest of the server's API URL.

        Returns:
            ServerRecord if found, None otherwise.
        """
        return self._servers.get(server_id)

    def remove_server(self, server_id: str) -> ServerRecord | None:
        """Remove a server from the registry.

        Args:
            server_id: The id of the server to remove.

        Returns:
            The removed record, or None if it wasn't found.

        Raises:
            OSError: If the registry file cannot be written. The server stays
                registered in that case.
        """
        with self._lock:
            record = self._servers.get(server_id)
            if record is None:
                return None

            servers = {key: value for key, value in self._servers.items() if key != server_id}
            self._autosave(servers)
            self._servers = servers

        logger.info(f"Removed server: {record.name} ({record.api_url})")
        return record

    def list_servers(self) -> list[ServerRecord]:
        """List all registered servers in insertion order."""
        return list(self._servers.values())

    def _autosave(self, servers: dict[str, ServerRecord]) -> None:
        if self._registry_path:
            _write_registry(Path(self._registry_path), servers)

    def save_to_file(self, path: str | None = None) -> None:
        """Save the current registry to a JSON file.

        Args:
            path: Path to save to. If None, uses the original path.
        """
        save_path = path or self._registry_path
        if not save_path:
            raise ValueError("No path specified for saving registry")

        _write_registry(Path(save_path), self._servers)

    def __len__(self) -> int:
        """Return the number of registered servers."""
        return len(self._servers)

    def __contains__(self, server_id: str) -> bool:
        """Check if a server id is registered."""
        return server_id in self._servers


def _find_by_name(servers: dict[str, ServerRecord], name: str) -> ServerRecord | None:
    for record in servers.values():
        if record.name == name:
            return record
    return None


def _write_registry(file_path: Path, servers: dict[str, ServerRecord]) -> None:
    file_path.parent.mkdir(parents=True, exist_ok=True)

    data = [
        record.model_dump(by_alias=True, exclude={"id"})
        for record in servers.values()
    ]

    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    logger.info(f"Saved registry to {file_path}")
