import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from recipe_backend.errors import StorageError
from recipe_backend.storage import ConnectionSettings, S3BlobStorageClient

CONNECTION_STRING = (
    "Endpoint=https://cos.ap-test.example.com;Region=ap-test;"
    "AccessKeyId=AKID;SecretAccessKey=secret"
)


class ConnectionSettingsTests(unittest.TestCase):
    def test_parse(self):
        parsed = ConnectionSettings.parse(
            CONNECTION_STRING + ";PublicBaseUrl=https://cdn.example.com/videos/"
        )
        self.assertEqual(parsed.endpoint, "https://cos.ap-test.example.com")
        self.assertEqual(parsed.region, "ap-test")
        self.assertEqual(parsed.access_key_id, "AKID")
        self.assertEqual(parsed.secret_access_key, "secret")
        self.assertEqual(parsed.public_base_url, "https://cdn.example.com/videos")

    def test_parse_rejects_missing_credentials(self):
        with self.assertRaises(ValueError):
            ConnectionSettings.parse("Endpoint=https://cos.example.com")

    def test_parse_rejects_malformed_segment(self):
        with self.assertRaises(ValueError):
            ConnectionSettings.parse(CONNECTION_STRING + ";garbage")


@patch("recipe_backend.storage.boto3.client")
class S3BlobStorageClientTests(unittest.TestCase):
    def test_upload_sets_content_type_and_returns_url(self, mock_client_factory):
        s3 = MagicMock()
        mock_client_factory.return_value = s3
        client = S3BlobStorageClient(CONNECTION_STRING, "recipes")

        url = client.upload("pasta night.mp4", b"abc", "video/mp4")

        s3.put_object.assert_called_once_with(
            Bucket="recipes",
            Key="pasta night.mp4",
            Body=b"abc",
            ContentType="video/mp4",
        )
        self.assertEqual(
            url, "https://recipes.cos.ap-test.example.com/pasta%20night.mp4"
        )

    def test_upload_uses_public_base_url(self, mock_client_factory):
        mock_client_factory.return_value = MagicMock()
        client = S3BlobStorageClient(
            CONNECTION_STRING + ";PublicBaseUrl=https://cdn.example.com",
            "recipes",
        )
        self.assertEqual(
            client.upload("a.mp4", b"abc", "video/mp4"),
            "https://cdn.example.com/a.mp4",
        )

    def test_upload_failure_raises_storage_error(self, mock_client_factory):
        s3 = MagicMock()
        s3.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        mock_client_factory.return_value = s3
        client = S3BlobStorageClient(CONNECTION_STRING, "recipes")

        with self.assertRaises(StorageError) as ctx:
            client.upload("a.mp4", b"abc", "video/mp4")
        self.assertIn("AccessDenied", ctx.exception.detail)

    def test_requires_connection_string(self, mock_client_factory):
        with self.assertRaises(ValueError):
            S3BlobStorageClient("", "recipes")


if __name__ == "__main__":
    unittest.main()
