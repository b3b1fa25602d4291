import unittest
from unittest.mock import patch

from photostore.db import Comment, InMemoryMetadataRepository, Photo
from photostore.errors import Conflict, InvalidInput, NotFound
from photostore.ratings import rating_doc_id
from photostore.service import EngagementService
from photostore.storage import ObjectRef


class EngagementServiceTests(unittest.TestCase):
    def setUp(self):
        self.repo = InMemoryMetadataRepository()
        self.service = EngagementService(self.repo)
        self.ref = ObjectRef(url="https://example.test/storage/k", stored_name="k")

    def test_create_photo_cleans_fields(self):
        photo = self.service.create_photo(
            self.ref,
            title="  Sunset ",
            caption=" over the bay",
            location=None,
            people="Alice, Bob ,, Carol",
        )
        self.assertEqual(photo.title, "Sunset")
        self.assertEqual(photo.caption, "over the bay")
        self.assertEqual(photo.location, "")
        self.assertEqual(photo.people, ["Alice", "Bob", "Carol"])
        self.assertEqual(photo.image_url, self.ref.url)
        self.assertEqual(photo.blob_name, "k")
        self.assertTrue(photo.created_at.endswith("Z"))
        self.assertIs(self.repo.photos[photo.id], photo)

    def test_create_photo_without_people(self):
        photo = self.service.create_photo(self.ref, people="")
        self.assertEqual(photo.people, [])

    def test_create_photo_assigns_fresh_ids(self):
        first = self.service.create_photo(self.ref)
        second = self.service.create_photo(self.ref)
        self.assertNotEqual(first.id, second.id)

    def test_duplicate_photo_id_conflicts(self):
        photo = Photo(id="p1", image_url="u", blob_name="b")
        self.repo.create_photo(photo)
        with self.assertRaises(Conflict):
            self.repo.create_photo(Photo(id="p1", image_url="u2", blob_name="b2"))

    def test_get_photo_not_found(self):
        with self.assertRaises(NotFound):
            self.service.get_photo("missing")

    def test_list_photos_newest_first(self):
        self.repo.create_photo(
            Photo(id="old", image_url="u", blob_name="b", created_at="2024-01-01T00:00:00.000Z")
        )
        self.repo.create_photo(
            Photo(id="new", image_url="u", blob_name="b", created_at="2024-02-01T00:00:00.000Z")
        )
        self.assertEqual([p.id for p in self.service.list_photos()], ["new", "old"])

    def test_add_comment_defaults_author(self):
        comment = self.service.add_comment("p1", "", "hello")
        self.assertEqual(comment.author, "anonymous")
        self.assertEqual(comment.text, "hello")
        self.assertEqual(comment.photo_id, "p1")

    def test_add_comment_rejects_blank_text_without_writing(self):
        with self.assertRaises(InvalidInput):
            self.service.add_comment("p1", "Bob", "   ")
        self.assertEqual(self.repo.comments, {})

    def test_add_comment_caps_author(self):
        comment = self.service.add_comment("p1", "  a   very  " + "long" * 20, "hi")
        self.assertLessEqual(len(comment.author), 40)
        self.assertTrue(comment.author.startswith("a very long"))

    def test_comment_for_unknown_photo_is_accepted(self):
        self.service.add_comment("no-such-photo", "Bob", "first!")
        self.assertEqual(len(self.service.list_comments("no-such-photo")), 1)

    def test_list_comments_is_photo_scoped_and_newest_first(self):
        for i, photo_id in enumerate(["p1", "p2", "p1"]):
            self.repo.add_comment(
                Comment(
                    id=f"c{i}",
                    photo_id=photo_id,
                    author="a",
                    text="t",
                    created_at=f"2024-01-0{i + 1}T00:00:00.000Z",
                )
            )
        self.assertEqual([c.id for c in self.service.list_comments("p1")], ["c2", "c0"])

    def test_equal_timestamps_keep_insertion_order(self):
        for i in range(3):
            self.repo.add_comment(
                Comment(id=f"c{i}", photo_id="p1", author="a", text="t",
                        created_at="2024-01-01T00:00:00.000Z")
            )
        self.assertEqual(
            [c.id for c in self.service.list_comments("p1")], ["c0", "c1", "c2"]
        )

    def test_equal_photo_timestamps_keep_insertion_order(self):
        with patch(
            "photostore.service.now_iso", return_value="2024-01-01T00:00:00.000Z"
        ):
            created = [self.service.create_photo(self.ref) for _ in range(3)]
        self.assertEqual(
            [p.id for p in self.service.list_photos()], [p.id for p in created]
        )

    def test_upsert_rating_refreshes_timestamp(self):
        with patch(
            "photostore.service.now_iso",
            side_effect=["2024-01-01T00:00:00.000Z", "2024-02-01T00:00:00.000Z"],
        ):
            self.service.upsert_rating("p1", "Alice", 2)
            self.service.upsert_rating("p1", "Alice", 4)
        rating = self.repo.ratings["p1"][rating_doc_id("p1", "Alice")]
        self.assertEqual(rating.created_at, "2024-02-01T00:00:00.000Z")
        self.assertEqual(rating.value, 4)

    def test_upsert_rating_last_write_wins(self):
        self.service.upsert_rating("p1", "Alice", 2)
        summary = self.service.upsert_rating("p1", "Alice", 5)
        self.assertEqual(summary.count, 1)
        self.assertEqual(summary.average, 5.0)
        stored = self.repo.ratings["p1"]
        self.assertEqual(len(stored), 1)
        rating = stored[rating_doc_id("p1", "Alice")]
        self.assertEqual(rating.value, 5)
        self.assertEqual(rating.author, "Alice")

    def test_trailing_whitespace_is_same_author(self):
        self.service.upsert_rating("p1", "alice", 3)
        summary = self.service.upsert_rating("p1", "alice ", 5)
        self.assertEqual(summary.count, 1)
        self.assertEqual(summary.average, 5.0)

    def test_case_variants_are_distinct_authors(self):
        self.service.upsert_rating("p1", "Alice", 3)
        summary = self.service.upsert_rating("p1", "alice ", 5)
        self.assertEqual(summary.count, 2)
        self.assertEqual(summary.average, 4.0)

    def test_blank_raters_share_anonymous_slot(self):
        self.service.upsert_rating("p1", None, 1)
        summary = self.service.upsert_rating("p1", "  ", 4)
        self.assertEqual(summary.count, 1)
        self.assertEqual(summary.average, 4.0)

    def test_invalid_rating_is_rejected_before_write(self):
        for value in (0, 6, 2.5, "x"):
            with self.assertRaises(InvalidInput):
                self.service.upsert_rating("p1", "Alice", value)
        self.assertEqual(self.repo.ratings, {})

    def test_rating_summary_for_unrated_photo(self):
        summary = self.service.get_rating_summary("p1")
        self.assertEqual(summary.count, 0)
        self.assertEqual(summary.average, 0)
        self.assertEqual(summary.distribution, {1: 0, 2: 0, 3: 0, 4: 0, 5: 0})

    def test_rating_summary_distribution(self):
        for author, value in [("a", 5), ("b", 5), ("c", 4), ("d", 3), ("e", 3)]:
            self.service.upsert_rating("p1", author, value)
        summary = self.service.get_rating_summary("p1")
        self.assertEqual(summary.count, 5)
        self.assertEqual(summary.average, 4.0)
        self.assertEqual(summary.distribution, {1: 0, 2: 0, 3: 2, 4: 1, 5: 2})

    def test_upsert_returns_recomputed_summary(self):
        with patch.object(
            self.repo, "list_rating_values", wraps=self.repo.list_rating_values
        ) as spy:
            self.service.upsert_rating("p1", "Alice", 4)
        spy.assert_called_once_with("p1")

    def test_blank_photo_id_is_rejected(self):
        with self.assertRaises(InvalidInput):
            self.service.add_comment("  ", "Bob", "hi")


if __name__ == "__main__":
    unittest.main()
