import json
import unittest
from unittest.mock import MagicMock, patch

from pymongo.errors import DuplicateKeyError, PyMongoError

from app.dtos.onboarding import ImageAttachment
from app.services.intake_notifications import NotificationDispatcher
from app.services.intake_service import IntakeSubmissionPipeline, build_asset_key
from app.services.intake_validation import IntakeValidator
from app.services.onboarding_exceptions import (
    IntakeValidationError,
    NotificationError,
    PersistenceError,
    UploadError,
)


class FakeSubmissionStore:
    """Dict-backed record store keyed by (identity_key, timestamp)."""

    def __init__(self, existing_incomplete=0):
        self.records = {}
        self.existing_incomplete = existing_incomplete
        self.fail_insert = False
        self.fail_count = False

    def insert_submission(self, submission):
        if self.fail_insert:
            raise PyMongoError("connection reset")
        key = (submission.identity_key, submission.timestamp)
        if key in self.records:
            raise DuplicateKeyError("duplicate identity_key_timestamp")
        self.records[key] = submission.model_copy(deep=True)
        return submission

    def set_images(self, identity_key, timestamp, image_urls):
        record = self.records.get((identity_key, timestamp))
        if record is None:
            return False
        record.images = list(image_urls)
        return True

    def count_incomplete(self):
        if self.fail_count:
            raise PyMongoError("count failed")
        return self.existing_incomplete + sum(
            1 for record in self.records.values() if not record.is_complete
        )

    def only_record(self):
        (record,) = self.records.values()
        return record


class FakeAssetStore:
    def __init__(self, fail_at=None):
        self.fail_at = fail_at
        self.put_calls = []

    def put(self, bucket, key, data, content_type=None):
        index = len(self.put_calls)
        self.put_calls.append(key)
        if index == self.fail_at:
            raise OSError("storage unavailable")
        return f"http://assets.test/{bucket}/{key}"


def form_fields():
    return {
        "name": "Ada",
        "email": "ada@example.com",
        "githubHandle": "octocat",
        "shouldDesign": "true",
        "isOneProjectPerRepo": "true",
        "repos": json.dumps(
            [
                {
                    "fullName": "octocat/alpha",
                    "githubRepoId": 101,
                    "permissions": {"admin": True, "push": True, "pull": True},
                }
            ]
        ),
    }


def image(index):
    return ImageAttachment(filename=f"{index}.png", content_type="image/png", data=b"png")


@patch("app.services.intake_service.unix_timestamp", return_value=1700000000)
class TestIntakeSubmissionPipeline(unittest.TestCase):

    def setUp(self):
        self.store = FakeSubmissionStore()
        self.assets = FakeAssetStore()
        self.notifier = MagicMock()

    def make_pipeline(self):
        return IntakeSubmissionPipeline(
            validator=IntakeValidator(),
            repository=self.store,
            storage=self.assets,
            dispatcher=NotificationDispatcher(self.notifier, operations_email="ops@example.com"),
            bucket="intake_form_assets",
        )

    def test_zero_attachments_counts_the_new_record(self, _ts):
        self.store.existing_incomplete = 3

        response = self.make_pipeline().submit(form_fields(), [])

        self.assertEqual(response.queue_number, 4)
        self.assertEqual(response.msg, "Successfully submitted intake form")
        self.assertEqual(response.form_data["githubHandle"], "octocat")
        self.assertEqual(self.assets.put_calls, [])

        record = self.store.only_record()
        self.assertEqual(record.identity_key, "ada@example.com-octocat")
        self.assertEqual(record.timestamp, 1700000000)
        self.assertEqual(record.notes, "")
        self.assertEqual(record.images, [])
        self.assertFalse(record.is_complete)

    def test_images_are_uploaded_in_order_and_attached(self, _ts):
        response = self.make_pipeline().submit(form_fields(), [image(0), image(1)])

        expected_keys = [
            build_asset_key(1700000000, "octocat", "ada@example.com", index)
            for index in range(2)
        ]
        self.assertEqual(self.assets.put_calls, expected_keys)
        self.assertEqual(expected_keys[0], "1700000000-octocat-ada@example.com-0")
        self.assertEqual(
            self.store.only_record().images,
            [f"http://assets.test/intake_form_assets/{key}" for key in expected_keys],
        )
        self.assertEqual(response.queue_number, 1)

        _, body = self.notifier.send_plain.call_args.args[1:]
        self.assertIn(f"http://assets.test/intake_form_assets/{expected_keys[1]}", body)

    def test_upload_failure_stops_and_keeps_record_without_images(self, _ts):
        self.assets.fail_at = 2
        images = [image(index) for index in range(4)]

        with self.assertRaises(UploadError) as ctx:
            self.make_pipeline().submit(form_fields(), images)

        self.assertEqual(str(ctx.exception), "Failed to submit intake form assets")
        self.assertEqual(ctx.exception.index, 2)
        # images 0 and 1 stored, 2 attempted, 3 never tried
        self.assertEqual(len(self.assets.put_calls), 3)
        self.assertEqual(self.store.only_record().images, [])
        self.notifier.send_templated.assert_not_called()

    def test_validation_failure_persists_nothing(self, _ts):
        fields = form_fields()
        del fields["email"]

        with self.assertRaises(IntakeValidationError):
            self.make_pipeline().submit(fields, [image(0)])

        self.assertEqual(self.store.records, {})
        self.assertEqual(self.assets.put_calls, [])

    def test_insert_failure_is_a_persistence_error(self, _ts):
        self.store.fail_insert = True

        with self.assertRaises(PersistenceError) as ctx:
            self.make_pipeline().submit(form_fields(), [image(0)])

        self.assertEqual(str(ctx.exception), "Failed to submit intake form")
        self.assertEqual(self.assets.put_calls, [])

    def test_resubmission_in_the_same_second_is_rejected(self, _ts):
        pipeline = self.make_pipeline()
        pipeline.submit(form_fields(), [])

        with self.assertRaises(PersistenceError):
            pipeline.submit(form_fields(), [])

        self.assertEqual(len(self.store.records), 1)

    def test_unmatched_image_patch_is_a_persistence_error(self, _ts):
        self.store.set_images = MagicMock(return_value=False)

        with self.assertRaises(PersistenceError) as ctx:
            self.make_pipeline().submit(form_fields(), [image(0)])

        self.assertEqual(str(ctx.exception), "Failed to submit image URLs")

    def test_notification_outage_still_succeeds(self, _ts):
        self.store.existing_incomplete = 1
        self.notifier.send_templated.side_effect = NotificationError("SMTP down")

        response = self.make_pipeline().submit(form_fields(), [])

        self.assertEqual(response.queue_number, 2)
        self.assertEqual(len(self.store.records), 1)

    def test_count_failure_leaves_queue_number_undefined(self, _ts):
        self.store.fail_count = True

        with self.assertLogs("app.services.intake_service", level="ERROR") as logs:
            response = self.make_pipeline().submit(form_fields(), [])

        self.assertIsNone(response.queue_number)
        self.assertIn("Failed to count incomplete intake forms", logs.output[0])
        self.assertIsNotNone(logs.records[0].exc_info)
        model = self.notifier.send_templated.call_args.args[2]
        self.assertEqual(model["queue_number"], "")


if __name__ == "__main__":
    unittest.main()
