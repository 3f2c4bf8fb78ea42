"""
Tests for the file-backed user directory.
"""

import pytest

from atm_ledger.exceptions import (
    ConflictError,
    MalformedRecordError,
    StorageIOError,
    ValidationError,
)
from atm_ledger.services.storage import FileUserDirectory, hash_password


class TestRegistration:
    """Tests for registering users."""

    def test_register_assigns_sequential_ids(self, users):
        first = users.register("alice", "wonderland")
        second = users.register("bob", "builder")
        assert (first.id, second.id) == (0, 1)

    def test_register_writes_hash_not_password(self, users):
        users.register("alice", "wonderland")
        content = users.path.read_text(encoding="utf-8")
        assert "wonderland" not in content
        assert content == f"0 alice {hash_password('wonderland')}\n"

    def test_duplicate_name_rejected(self, users, alice):
        with pytest.raises(ConflictError):
            users.register("alice", "another")

    @pytest.mark.parametrize("name", ["", "mary ann", "x" * 51])
    def test_bad_name_rejected(self, users, name):
        with pytest.raises(ValidationError):
            users.register(name, "secret")

    @pytest.mark.parametrize("password", ["", "two words"])
    def test_bad_password_rejected(self, users, password):
        with pytest.raises(ValidationError):
            users.register("carol", password)


class TestLookup:
    """Tests for finding and authenticating users."""

    def test_find_by_name(self, users, alice, bob):
        assert users.find_by_name("bob") == bob
        assert users.find_by_name("carol") is None

    def test_authenticate(self, users, alice):
        assert users.authenticate("alice", "wonderland") == alice
        assert users.authenticate("alice", "wrong") is None
        assert users.authenticate("nobody", "wonderland") is None

    def test_reads_existing_directory(self, tmp_path):
        path = tmp_path / "users.txt"
        path.write_text(
            f"0 Alice {hash_password('q1w2e3r4t5y6')}\n\n1 Michel {hash_password('q1w2e3r4t5y6')}\n",
            encoding="utf-8",
        )
        directory = FileUserDirectory(path)
        assert [u.name for u in directory.scan()] == ["Alice", "Michel"]
        assert directory.next_id() == 2

    def test_malformed_line(self, tmp_path):
        path = tmp_path / "users.txt"
        path.write_text("zero Alice hash\n", encoding="utf-8")
        with pytest.raises(MalformedRecordError) as exc_info:
            FileUserDirectory(path).find_by_name("Alice")
        assert exc_info.value.line_number == 1

    def test_invalid_utf8_is_malformed(self, tmp_path):
        path = tmp_path / "users.txt"
        path.write_bytes(b"0 al\xffice abc\n")
        with pytest.raises(MalformedRecordError) as exc_info:
            list(FileUserDirectory(path).scan())
        assert exc_info.value.path == path
        assert "UTF-8" in exc_info.value.reason

    def test_missing_directory(self, tmp_path):
        directory = FileUserDirectory(tmp_path / "missing.txt")
        with pytest.raises(StorageIOError):
            directory.find_by_name("alice")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
