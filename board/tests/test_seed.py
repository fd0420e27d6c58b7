import json
import tempfile
import unittest
from pathlib import Path

from board.kv import InMemoryKVClient
from board.seed import apply_seed, load_seed, parse_seed, push_seed
from board.store import ResilientStore, Tier

SEED = {
    "posts": [
        {"id": 1, "content": "older", "author": "alice", "createdAt": "2024-01-01T00:00:00+00:00"},
        {"id": 2, "content": "newer", "author": "bob", "createdAt": "2024-02-01T00:00:00+00:00", "likes": 4},
        {"content": "missing id"},
    ],
    "comments": [
        {"id": 10, "postId": 1, "content": "first", "author": "carol"},
        {"id": 11, "postId": 1, "content": "second", "author": "dave"},
        {"id": 12, "postId": 2, "content": "other", "author": "erin"},
    ],
}


class SeedParsingTests(unittest.TestCase):
    def test_parse_sorts_newest_first_and_skips_invalid(self):
        seed = parse_seed(SEED)
        self.assertEqual([p.id for p in seed.posts], ["2", "1"])
        self.assertEqual(seed.posts[0].likes, 4)
        self.assertEqual([c.content for c in seed.comments["1"]], ["first", "second"])
        self.assertEqual(seed.comment_count, 3)

    def test_parse_rejects_non_object(self):
        with self.assertRaises(ValueError):
            parse_seed([])
        with self.assertRaises(ValueError):
            parse_seed({"posts": {"id": 1}})

    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "db.json"
            path.write_text(json.dumps(SEED), encoding="utf-8")
            seed = load_seed(path)
        self.assertEqual(len(seed.posts), 2)

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            load_seed("/nonexistent/db.json")


class SeedApplyTests(unittest.IsolatedAsyncioTestCase):
    async def test_apply_seed_fills_fallback_only(self):
        store = ResilientStore(remote=None)
        apply_seed(store, parse_seed(SEED))

        posts = await store.get_posts()
        self.assertEqual(posts.source, Tier.FALLBACK)
        self.assertEqual(len(posts.value), 2)
        self.assertEqual(len((await store.get_comments("1")).value), 2)

    async def test_configured_remote_stays_authoritative(self):
        remote = InMemoryKVClient()
        store = ResilientStore(remote=remote)
        apply_seed(store, parse_seed(SEED))
        self.assertEqual(remote.items, {})
        posts = await store.get_posts()
        self.assertEqual(posts.source, Tier.REMOTE)
        self.assertEqual(posts.value, [])

    async def test_push_seed_writes_both_tiers(self):
        remote = InMemoryKVClient()
        store = ResilientStore(remote=remote)
        persisted = await push_seed(store, parse_seed(SEED))
        self.assertTrue(persisted)
        self.assertEqual(set(remote.items), {"posts", "comments:1", "comments:2"})

    async def test_push_seed_reports_unpersisted(self):
        store = ResilientStore(remote=None)
        self.assertFalse(await push_seed(store, parse_seed(SEED)))


if __name__ == "__main__":
    unittest.main()
