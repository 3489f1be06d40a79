import os
import shutil
import tempfile
import unittest

from recipe_backend.db import SqlRecipeStore
from recipe_backend.errors import StoreError


class SqlRecipeStoreTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store logic.
    """

    @classmethod
    def setUpClass(cls):
        cls.tmpdir = tempfile.mkdtemp()
        path = os.path.join(cls.tmpdir, "recipes.db")
        cls.db = SqlRecipeStore(f"sqlite+pysqlite:///{path}")

    @classmethod
    def tearDownClass(cls):
        cls.db.close()
        shutil.rmtree(cls.tmpdir, ignore_errors=True)

    def test_create_and_get_recipe(self):
        created = self.db.create_recipe(
            "r-1", "u1", "Pasta", "https://example.test/pasta.mp4", "20"
        )
        self.assertEqual(created.recipe_id, "r-1")
        self.assertIsNotNone(created.created_at)

        fetched = self.db.get_recipe("r-1")
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.title, "Pasta")
        self.assertEqual(fetched.video_url, "https://example.test/pasta.mp4")
        self.assertEqual(fetched.duration, "20")

    def test_get_missing_recipe(self):
        self.assertIsNone(self.db.get_recipe("missing"))

    def test_steps_are_ordered_by_step_number(self):
        self.db.create_recipe("r-2", "u1", "Soup", "https://example.test/s.mp4", "5")
        self.db.add_step("s-3", "r-2", 3, "Serve", "Serve hot")
        self.db.add_step("s-1", "r-2", 1, "Chop", "Chop onions")
        self.db.add_step("s-2", "r-2", 2, "Simmer", None)

        steps = self.db.list_steps("r-2")
        self.assertEqual([s.step_number for s in steps], [1, 2, 3])
        self.assertEqual(steps[0].step_title, "Chop")
        self.assertIsNone(steps[1].instructions)
        self.assertEqual(
            steps[2].as_dict(),
            {"step_number": 3, "instructions": "Serve hot", "step_title": "Serve"},
        )

    def test_list_recipes_includes_created(self):
        self.db.create_recipe("r-3", "u2", "Cake", "https://example.test/c.mp4", "60")
        ids = {r.recipe_id for r in self.db.list_recipes()}
        self.assertIn("r-3", ids)

    def test_duplicate_recipe_id_raises_store_error(self):
        self.db.create_recipe("r-4", "u1", "Tea", "https://example.test/t.mp4", "3")
        with self.assertRaises(StoreError):
            self.db.create_recipe(
                "r-4", "u1", "Tea", "https://example.test/t.mp4", "3"
            )

    def test_constructor_requires_url(self):
        with self.assertRaises(ValueError):
            SqlRecipeStore("")


if __name__ == "__main__":
    unittest.main()
