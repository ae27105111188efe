import unittest
from unittest.mock import MagicMock

from bson import ObjectId

from app.dtos.onboarding import SelectedRepository
from app.entities.intake_submission import IntakeSubmission
from app.repositories.intake_submission import IntakeSubmissionRepository


def make_submission():
    return IntakeSubmission(
        identity_key="ada@example.com-octocat",
        timestamp=1700000000,
        email="ada@example.com",
        github_handle="octocat",
        repos=[
            SelectedRepository(
                full_name="octocat/alpha",
                github_repo_id=101,
                permissions={"admin": True, "push": True, "pull": True},
            )
        ],
    )


class TestIntakeSubmissionRepository(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()
        self.db = MagicMock()
        self.db.__getitem__.return_value = self.collection
        self.repo = IntakeSubmissionRepository(self.db, collection_name="intake_forms")

    def test_uses_configured_collection(self):
        self.db.__getitem__.assert_called_with("intake_forms")

    def test_insert_stores_snapshot_and_assigns_id(self):
        inserted_id = ObjectId()
        self.collection.insert_one.return_value.inserted_id = inserted_id

        stored = self.repo.insert_submission(make_submission())

        self.assertEqual(stored.id, inserted_id)
        document = self.collection.insert_one.call_args.args[0]
        self.assertNotIn("_id", document)
        self.assertEqual(document["identity_key"], "ada@example.com-octocat")
        self.assertEqual(document["name"], "")
        self.assertEqual(document["images"], [])
        self.assertFalse(document["is_complete"])
        self.assertEqual(
            document["repos"][0],
            {
                "fullName": "octocat/alpha",
                "githubRepoId": 101,
                "permissions": {
                    "admin": True,
                    "maintain": False,
                    "push": True,
                    "triage": False,
                    "pull": True,
                },
            },
        )

    def test_set_images_targets_the_record_key(self):
        self.collection.update_one.return_value.matched_count = 1

        matched = self.repo.set_images("ada@example.com-octocat", 1700000000, ["u1", "u2"])

        self.assertTrue(matched)
        query, update = self.collection.update_one.call_args.args
        self.assertEqual(query, {"identity_key": "ada@example.com-octocat", "timestamp": 1700000000})
        self.assertEqual(update["$set"]["images"], ["u1", "u2"])

    def test_set_images_reports_missing_record(self):
        self.collection.update_one.return_value.matched_count = 0
        self.assertFalse(self.repo.set_images("nobody", 1, ["u1"]))

    def test_count_incomplete(self):
        self.collection.count_documents.return_value = 4

        self.assertEqual(self.repo.count_incomplete(), 4)
        self.collection.count_documents.assert_called_once_with({"is_complete": False})

    def test_ensure_indexes_makes_record_key_unique(self):
        self.repo.ensure_indexes()

        keys, kwargs = (
            self.collection.create_index.call_args_list[0].args[0],
            self.collection.create_index.call_args_list[0].kwargs,
        )
        self.assertEqual(keys, [("identity_key", 1), ("timestamp", 1)])
        self.assertTrue(kwargs["unique"])


if __name__ == "__main__":
    unittest.main()
