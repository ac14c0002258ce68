"""
Tests for repomirror.database file backend.

Tests cover:
- Loading database files (valid, empty, missing, malformed, unreadable)
- Noting equivalences and migrations
- Finding equivalences
- Writing through the DbWriter
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from repomirror.database import FileDb, FileDbFactory, DbWriter, DummyDb
from repomirror.domain import (
    EquivalenceStore,
    RepositoryEquivalence,
    Revision,
    SubmittedMigration,
)
from repomirror.errors import ParseError, PersistenceError
from repomirror.infra import FileSystem


VALID_DB = json.dumps({
    "equivalences": [
        {
            "rev1": {"rev_id": "r1", "repository_name": "name1"},
            "rev2": {"rev_id": "r2", "repository_name": "name2"},
        }
    ]
}, indent=2)


def parse_json(text, location=None):
    return FileDb(location, EquivalenceStore.from_json(text), DbWriter(FileSystem()))


class TestFileDb(unittest.TestCase):
    """Tests for FileDb operations on an in-memory store."""

    def test_valid_db(self):
        db = parse_json(VALID_DB)
        self.assertEqual(
            db.get_equivalences(),
            {RepositoryEquivalence(Revision("r1", "name1"), Revision("r2", "name2"))}
        )

    def test_empty_db(self):
        db = parse_json("{}")
        self.assertEqual(db.get_equivalences(), frozenset())
        self.assertEqual(db.get_migrations(), frozenset())

    def test_note_equivalence(self):
        db = parse_json('{"equivalences": []}')
        e = RepositoryEquivalence(Revision("r1", "name1"), Revision("r2", "name2"))
        db.note_equivalence(e)
        self.assertEqual(db.get_equivalences(), {e})

    def test_note_equivalence_twice(self):
        db = parse_json('{"equivalences": []}')
        e = RepositoryEquivalence(Revision("r1", "name1"), Revision("r2", "name2"))
        db.note_equivalence(e)
        db.note_equivalence(RepositoryEquivalence(e.rev2, e.rev1))
        self.assertEqual(db.get_equivalences(), {e})
        self.assertEqual(len(db.storage.equivalences), 1)

    def test_note_migration(self):
        db = parse_json("{}")
        migration = SubmittedMigration(Revision("r1", "name1"), Revision("r2", "name2"))
        self.assertTrue(db.note_migration(migration))
        # Already recorded, so noting it again reports False
        self.assertFalse(db.note_migration(migration))
        self.assertEqual(db.get_migrations(), {migration})
        self.assertTrue(db.has_migration(migration))

    def test_find_equivalences(self):
        db = parse_json(json.dumps({
            "equivalences": [
                {"rev1": {"rev_id": "r1", "repository_name": "name1"},
                 "rev2": {"rev_id": "r2", "repository_name": "name2"}},
                {"rev1": {"rev_id": "r3", "repository_name": "name2"},
                 "rev2": {"rev_id": "r1", "repository_name": "name1"}},
            ]
        }))
        self.assertEqual(
            db.find_equivalences(Revision("r1", "name1"), "name2"),
            {Revision("r2", "name2"), Revision("r3", "name2")}
        )

    def test_find_equivalences_is_symmetric(self):
        db = parse_json(VALID_DB)
        self.assertEqual(db.find_equivalences(Revision("r1", "name1"), "name2"),
                         {Revision("r2", "name2")})
        self.assertEqual(db.find_equivalences(Revision("r2", "name2"), "name1"),
                         {Revision("r1", "name1")})

    def test_find_equivalences_ignores_other_repositories(self):
        db = parse_json(json.dumps({
            "equivalences": [
                {"rev1": {"rev_id": "r1", "repository_name": "name1"},
                 "rev2": {"rev_id": "r9", "repository_name": "name3"}},
            ]
        }))
        self.assertEqual(db.find_equivalences(Revision("r1", "name1"), "name2"), frozenset())

    def test_find_equivalences_no_match(self):
        db = parse_json(VALID_DB)
        self.assertEqual(db.find_equivalences(Revision("r404", "name1"), "name2"), frozenset())

    def test_get_equivalences_is_snapshot(self):
        db = parse_json(VALID_DB)
        before = db.get_equivalences()
        db.note_equivalence(RepositoryEquivalence(Revision("r5", "name1"), Revision("r6", "name2")))
        self.assertEqual(len(before), 1)
        self.assertEqual(len(db.get_equivalences()), 2)

    def test_serialization(self):
        db = parse_json(json.dumps({
            "equivalences": [
                {"rev1": {"rev_id": "r1", "repository_name": "name1"},
                 "rev2": {"rev_id": "r2", "repository_name": "name2"}},
            ],
            "migrations": [
                {"from": {"rev_id": "r1", "repository_name": "name1"},
                 "to": {"rev_id": "r2", "repository_name": "name2"}},
            ],
        }))
        equivalence, = db.get_equivalences()
        self.assertEqual(equivalence.get("name1").rev_id, "r1")
        self.assertEqual(equivalence.get("name2").rev_id, "r2")
        migration, = db.get_migrations()
        self.assertEqual(migration.from_rev.repository_name, "name1")
        self.assertEqual(migration.from_rev.rev_id, "r1")
        self.assertEqual(migration.to_rev.repository_name, "name2")
        self.assertEqual(migration.to_rev.rev_id, "r2")


class TestFileDbFactory(unittest.TestCase):
    """Tests for loading databases through a (mock) file system."""

    def test_make_db_from_file(self):
        filesystem = MagicMock(spec=FileSystem)
        filesystem.exists.return_value = True
        filesystem.file_to_string.return_value = VALID_DB
        db_file = Path("/path/to/db")

        db = FileDbFactory(filesystem).load(db_file)

        filesystem.exists.assert_called_once_with(db_file)
        filesystem.file_to_string.assert_called_once_with(db_file)
        self.assertEqual(db.get_equivalences(), parse_json(VALID_DB).get_equivalences())
        self.assertEqual(db.location, "/path/to/db")

    def test_missing_file_is_empty_db(self):
        filesystem = MagicMock(spec=FileSystem)
        filesystem.exists.return_value = False

        db = FileDbFactory(filesystem).load("/path/to/db")

        filesystem.file_to_string.assert_not_called()
        self.assertEqual(db.get_equivalences(), frozenset())
        self.assertEqual(db.get_migrations(), frozenset())

    def test_malformed_file_names_path(self):
        filesystem = MagicMock(spec=FileSystem)
        filesystem.exists.return_value = True
        filesystem.file_to_string.return_value = '{"equivalences": [], "bogus": true}'

        with self.assertRaises(ParseError) as ctx:
            FileDbFactory(filesystem).load("/path/to/db")
        self.assertEqual(ctx.exception.path, "/path/to/db")

    def test_unreadable_file(self):
        filesystem = MagicMock(spec=FileSystem)
        filesystem.exists.return_value = True
        filesystem.file_to_string.side_effect = PermissionError("denied")

        with self.assertRaises(PersistenceError):
            FileDbFactory(filesystem).load("/path/to/db")

    def test_non_utf8_file_names_path(self):
        temp_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, temp_dir, ignore_errors=True)
        db_path = Path(temp_dir) / "db.json"
        db_path.write_bytes(b'{"equivalences": [], "migrations": [], "x": "\xff\xfe"}')

        with self.assertRaises(ParseError) as ctx:
            FileDbFactory().load(db_path)
        self.assertEqual(ctx.exception.path, str(db_path))


class TestFileDbWrite(unittest.TestCase):
    """Tests for persisting databases."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / 'db.json'

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_write_db_to_file(self):
        filesystem = MagicMock(spec=FileSystem)
        db_text = '{\n  "equivalences": [],\n  "migrations": []\n}\n'
        db = FileDb("/path/to/db", EquivalenceStore.from_json(db_text), DbWriter(filesystem))

        db.write()

        filesystem.write.assert_called_once_with(db_text, "/path/to/db")

    def test_write_without_location(self):
        db = FileDb(None, EquivalenceStore(), DbWriter(MagicMock(spec=FileSystem)))
        with self.assertRaises(PersistenceError):
            db.write()

    def test_write_failure_is_persistence_error(self):
        filesystem = MagicMock(spec=FileSystem)
        filesystem.write.side_effect = OSError("disk full")
        db = FileDb("/path/to/db", EquivalenceStore(), DbWriter(filesystem))
        with self.assertRaises(PersistenceError):
            db.write()

    def test_write_then_load_real_file(self):
        factory = FileDbFactory()
        db = factory.load(self.db_path)
        e = RepositoryEquivalence(Revision("1002", "internal"), Revision("2", "public"))
        m = SubmittedMigration(Revision("1003", "internal"), Revision("3", "public"))
        db.note_equivalence(e)
        self.assertTrue(db.note_migration(m))
        db.write()

        reloaded = factory.load(self.db_path)
        self.assertEqual(reloaded.get_equivalences(), {e})
        self.assertEqual(reloaded.get_migrations(), {m})
        self.assertFalse(reloaded.note_migration(m))

    def test_write_empty_store_is_not_skipped(self):
        db = FileDbFactory().load(self.db_path)
        db.write()
        self.assertEqual(
            self.db_path.read_text(),
            '{\n  "equivalences": [],\n  "migrations": []\n}\n'
        )

    def test_failed_write_keeps_previous_content(self):
        self.db_path.write_text('{"equivalences": []}')
        filesystem = FileSystem()
        db = FileDbFactory(filesystem).load(self.db_path)
        db.note_equivalence(RepositoryEquivalence(Revision("a", "x"), Revision("b", "y")))

        with patch('repomirror.infra.file_store.os.replace',
                                 side_effect=OSError("rename failed")):
            with self.assertRaises(PersistenceError):
                db.write()

        self.assertEqual(self.db_path.read_text(), '{"equivalences": []}')
        self.assertEqual(os.listdir(self.temp_dir), ['db.json'])


class TestDummyDb(unittest.TestCase):
    """Tests for the no-op backend."""

    def test_write_discards(self):
        db = DummyDb()
        db.note_equivalence(RepositoryEquivalence(Revision("a", "x"), Revision("b", "y")))
        db.write()
        self.assertIsNone(db.location)
        self.assertEqual(len(db.get_equivalences()), 1)

    def test_note_migration_idempotent(self):
        db = DummyDb()
        m = SubmittedMigration(Revision("a", "x"), Revision("b", "y"))
        self.assertTrue(db.note_migration(m))
        self.assertFalse(db.note_migration(m))


if __name__ == '__main__':
    unittest.main()
