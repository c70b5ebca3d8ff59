"""DB migration smoke test."""
import os
import sqlite3
import tempfile
import unittest

from backend.app.db.migrate import apply_migrations, apply_schema


class TestMigrate(unittest.TestCase):
    def test_apply_schema_idempotent(self):
        with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
            path = f.name
        try:
            apply_schema(path)
            apply_schema(path)
            conn = sqlite3.connect(path)
            cur = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name IN "
                "('characters', 'elements', 'character_owned_elements', 'puzzles', 'timeline_events', 'schema_migrations')"
            )
            tables = {r[0] for r in cur.fetchall()}
            self.assertEqual(
                tables,
                {"characters", "elements", "character_owned_elements", "puzzles", "timeline_events", "schema_migrations"},
            )
            self.assertEqual(apply_migrations(conn), [])
            conn.close()
        finally:
            if os.path.exists(path):
                os.unlink(path)

    def test_fresh_connection_reports_applied(self):
        conn = sqlite3.connect(":memory:")
        try:
            self.assertEqual(apply_migrations(conn), ["0001_init"])
            cols = {r[1] for r in conn.execute("PRAGMA table_info(elements)").fetchall()}
            self.assertIn("calculated_memory_value", cols)
            self.assertIn("group_multiplier", cols)
        finally:
            conn.close()


if __name__ == "__main__":
    unittest.main()
