"""Tests for the Server Registry."""

import hashlib
import json
import tempfile
import threading
from pathlib import Path

import pytest

from ghe_registry.registry.models import (
    ErrorCode,
    ServerCreateRequest,
    ServerRecord,
    server_id_for,
)
from ghe_registry.registry.server_registry import DuplicateServerError, ServerRegistry
from ghe_registry.registry.validation import validate_required_fields

API_URL = "https://github.corp.example/api/v3"


class TestServerRegistry:
    """Tests for ServerRegistry class."""

    def test_empty_registry(self) -> None:
        """Test creating an empty registry."""
        registry = ServerRegistry()

        assert len(registry) == 0
        assert registry.list_servers() == []
        assert registry.get_server("nonexistent") is None

    def test_create_server(self) -> None:
        """Test registering a server."""
        registry = ServerRegistry()

        record = registry.create("Corp GHE", API_URL)

        assert record.name == "Corp GHE"
        assert record.api_url == API_URL
        assert len(registry) == 1
        assert record.id in registry
        assert registry.get_server(record.id) == record

    def test_create_duplicate_api_url(self) -> None:
        """Test that an API URL can only be registered once."""
        registry = ServerRegistry()
        registry.create("Corp GHE", API_URL)

        with pytest.raises(DuplicateServerError) as exc_info:
            registry.create("Corp GHE 2", API_URL)

        errors = exc_info.value.errors
        assert len(errors) == 1
        assert errors[0].field == "apiUrl"
        assert errors[0].code == ErrorCode.ALREADY_EXISTS
        assert errors[0].message == "apiUrl is already registered as 'Corp GHE'"
        assert len(registry) == 1

    def test_create_duplicate_name(self) -> None:
        """Test that a name can only be registered once."""
        registry = ServerRegistry()
        registry.create("Corp GHE", API_URL)

        with pytest.raises(DuplicateServerError) as exc_info:
            registry.create("Corp GHE", "https://other.example/api/v3")

        errors = exc_info.value.errors
        assert len(errors) == 1
        assert errors[0].field == "name"
        assert errors[0].code == ErrorCode.ALREADY_EXISTS
        assert errors[0].message == f"name already exists for server at '{API_URL}'"

    def test_create_duplicate_name_and_api_url(self) -> None:
        """Test that both collisions are reported, name first."""
        registry = ServerRegistry()
        registry.create("Corp GHE", API_URL)

        with pytest.raises(DuplicateServerError) as exc_info:
            registry.create("Corp GHE", API_URL)

        assert [e.field for e in exc_info.value.errors] == ["name", "apiUrl"]

    def test_remove_server(self) -> None:
        """Test removing a server."""
        registry = ServerRegistry()
        record = registry.create("Corp GHE", API_URL)

        assert registry.remove_server(record.id) == record
        assert len(registry) == 0
        assert registry.remove_server(record.id) is None

        # The name and URL are free again
        registry.create("Corp GHE", API_URL)
        assert len(registry) == 1

    def test_list_servers_keeps_insertion_order(self) -> None:
        """Test listing servers in the order they were registered."""
        registry = ServerRegistry()

        registry.create("c", "https://c.example/api/v3")
        registry.create("a", "https://a.example/api/v3")
        registry.create("b", "https://b.example/api/v3")

        assert [s.name for s in registry.list_servers()] == ["c", "a", "b"]

    def test_find_by_name_and_url(self) -> None:
        """Test the uniqueness lookups."""
        registry = ServerRegistry()
        record = registry.create("Corp GHE", API_URL)

        assert registry.find_by_name("Corp GHE") == record
        assert registry.find_by_name("Other") is None
        assert registry.find_by_api_url(API_URL) == record
        assert registry.find_by_api_url(API_URL + "/") is None

    def test_concurrent_creates_register_once(self) -> None:
        """Test that racing creates for the same server only succeed once."""
        registry = ServerRegistry()
        barrier = threading.Barrier(8)
        failures: list[DuplicateServerError] = []

        def worker(index: int) -> None:
            barrier.wait()
            try:
                registry.create(f"Server {index}", API_URL)
            except DuplicateServerError as e:
                failures.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 1
        assert len(failures) == 7

    def test_load_from_file(self) -> None:
        """Test loading registry from a JSON file."""
        data = [
            {"name": "Corp GHE", "apiUrl": API_URL},
            {"name": "Lab GHE", "apiUrl": "https://lab.example/api/v3"},
        ]

        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump(data, f)
            temp_path = f.name

        try:
            registry = ServerRegistry(temp_path)

            assert len(registry) == 2
            assert [s.name for s in registry.list_servers()] == ["Corp GHE", "Lab GHE"]

            corp = registry.get_server(server_id_for(API_URL))
            assert corp is not None
            assert corp.name == "Corp GHE"
        finally:
            Path(temp_path).unlink()

    def test_load_nonexistent_file(self) -> None:
        """Test loading from a nonexistent file."""
        registry = ServerRegistry("/nonexistent/path/servers.json")

        assert len(registry) == 0

    def test_load_invalid_json(self) -> None:
        """Test that an unparsable file leaves the registry empty."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write("{not json")
            temp_path = f.name

        try:
            registry = ServerRegistry(temp_path)
            assert len(registry) == 0
        finally:
            Path(temp_path).unlink()

    def test_load_invalid_utf8(self, tmp_path: Path) -> None:
        """Test that a file that is not UTF-8 leaves the registry empty."""
        path = tmp_path / "servers.json"
        path.write_bytes(b'[{"name": "\xff\xfe", "apiUrl": "http://u1"}]')

        registry = ServerRegistry(str(path))

        assert len(registry) == 0

    def test_load_directory_path(self, tmp_path: Path) -> None:
        """Test that a directory in place of the file leaves the registry empty."""
        registry = ServerRegistry(str(tmp_path))

        assert len(registry) == 0

    def test_load_not_a_list(self, tmp_path: Path) -> None:
        """Test that a JSON object instead of an array is rejected."""
        path = tmp_path / "servers.json"
        path.write_text(json.dumps({"name": "Corp GHE", "apiUrl": API_URL}))

        registry = ServerRegistry(str(path))

        assert len(registry) == 0

    def test_load_malformed_entry_discards_all(self, tmp_path: Path) -> None:
        """Test that one bad entry leaves the registry empty."""
        path = tmp_path / "servers.json"
        path.write_text(json.dumps([{"name": "A", "apiUrl": "http://u1"}, {"name": 5}]))

        registry = ServerRegistry(str(path))

        assert len(registry) == 0

    def test_load_skips_duplicate_names(self, tmp_path: Path) -> None:
        """Test that a second entry with an existing name is dropped."""
        path = tmp_path / "servers.json"
        path.write_text(
            json.dumps(
                [
                    {"name": "A", "apiUrl": "http://u1"},
                    {"name": "A", "apiUrl": "http://u2"},
                    {"name": "B", "apiUrl": "http://u1"},
                    {"name": "C", "apiUrl": "http://u3"},
                ]
            )
        )

        registry = ServerRegistry(str(path))

        assert [(s.name, s.api_url) for s in registry.list_servers()] == [
            ("A", "http://u1"),
            ("C", "http://u3"),
        ]

    def test_failed_save_does_not_register(self, tmp_path: Path) -> None:
        """Test that a create whose save fails leaves the registry unchanged."""
        registry = ServerRegistry(str(tmp_path))

        with pytest.raises(OSError):
            registry.create("A", "http://a")

        assert len(registry) == 0
        assert registry.find_by_name("A") is None

    def test_failed_save_does_not_remove(self, tmp_path: Path) -> None:
        """Test that a remove whose save fails keeps the server."""
        path = tmp_path / "servers.json"
        registry = ServerRegistry(str(path))
        record = registry.create("Corp GHE", API_URL)

        path.unlink()
        path.mkdir()

        with pytest.raises(OSError):
            registry.remove_server(record.id)

        assert registry.get_server(record.id) == record

    def test_create_persists_to_file(self, tmp_path: Path) -> None:
        """Test that mutations are written back to the registry file."""
        path = tmp_path / "servers.json"
        registry = ServerRegistry(str(path))

        record = registry.create("Corp GHE", API_URL)

        with open(path) as f:
            assert json.load(f) == [{"name": "Corp GHE", "apiUrl": API_URL}]

        reloaded = ServerRegistry(str(path))
        assert reloaded.get_server(record.id) == record

        registry.remove_server(record.id)
        with open(path) as f:
            assert json.load(f) == []

    def test_save_to_file(self) -> None:
        """Test saving registry to a JSON file."""
        registry = ServerRegistry()
        registry.create("Corp GHE", API_URL)

        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            temp_path = f.name

        try:
            registry.save_to_file(temp_path)

            with open(temp_path) as f:
                data = json.load(f)

            assert data == [{"name": "Corp GHE", "apiUrl": API_URL}]
        finally:
            Path(temp_path).unlink()

    def test_save_without_path(self) -> None:
        """Test that saving an in-memory registry needs an explicit path."""
        registry = ServerRegistry()

        with pytest.raises(ValueError):
            registry.save_to_file()


class TestServerRecord:
    """Tests for ServerRecord model."""

    def test_id_is_sha256_of_api_url(self) -> None:
        """Test that the id is derived from the API URL."""
        record = ServerRecord(name="Corp GHE", api_url=API_URL)

        assert record.id == hashlib.sha256(API_URL.encode("utf-8")).hexdigest()
        assert record.id == ServerRecord(name="Other", api_url=API_URL).id

    def test_serializes_with_aliases(self) -> None:
        """Test the JSON shape of a record."""
        record = ServerRecord.model_validate({"name": "Corp GHE", "apiUrl": API_URL})

        assert record.model_dump(by_alias=True) == {
            "name": "Corp GHE",
            "apiUrl": API_URL,
            "id": server_id_for(API_URL),
        }


class TestRequiredFields:
    """Tests for required-field validation."""

    def test_both_missing(self) -> None:
        """Test that both errors are reported, name first."""
        errors = validate_required_fields(ServerCreateRequest())

        assert [(e.field, e.code) for e in errors] == [
            ("name", ErrorCode.MISSING),
            ("apiUrl", ErrorCode.MISSING),
        ]
        assert errors[0].message == "name is required"
        assert errors[1].message == "apiUrl is required"

    def test_blank_values_count_as_missing(self) -> None:
        """Test that whitespace-only values are treated as missing."""
        request = ServerCreateRequest.model_validate({"name": "  ", "apiUrl": ""})

        assert [e.field for e in validate_required_fields(request)] == ["name", "apiUrl"]

    def test_values_are_stripped(self) -> None:
        """Test that surrounding whitespace is removed."""
        request = ServerCreateRequest.model_validate({"name": " Corp ", "apiUrl": f" {API_URL} "})

        assert request.name == "Corp"
        assert request.api_url == API_URL
        assert validate_required_fields(request) == []
