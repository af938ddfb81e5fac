"""
Tests for LocalStorage key-value slots.
"""

from edulog.storage.local import LocalStorage, RECORDS_KEY, SHEET_URL_KEY


def test_wal_mode_enabled(storage):
    """Test that WAL mode is enabled."""
    with storage._get_connection() as conn:
        result = conn.execute("PRAGMA journal_mode").fetchone()
        assert result[0].upper() == "WAL"


def test_missing_slot_is_none(storage):
    assert storage.get(SHEET_URL_KEY) is None


def test_set_overwrites(storage):
    storage.set(RECORDS_KEY, "[]")
    storage.set(RECORDS_KEY, '[{"id": "x"}]')
    assert storage.get(RECORDS_KEY) == '[{"id": "x"}]'


def test_values_survive_reopen(tmp_path):
    """Test that a second instance on the same file sees earlier writes."""
    db_path = tmp_path / "kv.sqlite"
    LocalStorage(db_path).set(SHEET_URL_KEY, "https://example.com/exec")

    reopened = LocalStorage(db_path)
    assert reopened.get(SHEET_URL_KEY) == "https://example.com/exec"


def test_remove(storage):
    storage.set(SHEET_URL_KEY, "https://example.com/exec")
    storage.remove(SHEET_URL_KEY)
    assert storage.get(SHEET_URL_KEY) is None
    # Removing again is harmless
    storage.remove(SHEET_URL_KEY)
