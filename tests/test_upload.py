"""Tests for the S3 upload sink."""
import io
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from fnbundle.errors import UploadError
from fnbundle.models import ArchiveArtifact
from fnbundle.upload import S3Uploader


def _client(response=None, error=None):
    client = Mock()
    if error is not None:
        client.put_object.side_effect = error
    else:
        client.put_object.return_value = response or {}
    return client


class TestS3Uploader:
    def test_versioned_bucket(self):
        client = _client({"VersionId": "3HL4kqtJlcpXroDTDmjVBH40Nrjfkd"})
        body = io.BytesIO(b"zip")
        assert S3Uploader(client).upload(body, "bucket", "fn/code.zip") == "3HL4kqtJlcpXroDTDmjVBH40Nrjfkd"
        client.put_object.assert_called_once_with(Bucket="bucket", Key="fn/code.zip", Body=body)

    def test_unversioned_bucket(self):
        assert S3Uploader(_client({"ETag": '"abc"'})).upload(io.BytesIO(b"zip"), "bucket", "key") == ""

    def test_client_error(self):
        err = ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject")
        with pytest.raises(UploadError, match="s3://bucket/key"):
            S3Uploader(_client(error=err)).upload(io.BytesIO(b"zip"), "bucket", "key")

    def test_requires_bucket_and_key(self):
        client = _client()
        with pytest.raises(UploadError):
            S3Uploader(client).upload(io.BytesIO(b"zip"), "", "key")
        client.put_object.assert_not_called()

    def test_upload_artifact_rewinds(self):
        seen = {}

        def put_object(**kwargs):
            seen["body"] = kwargs["Body"].read()
            return {"VersionId": "v1"}

        client = Mock()
        client.put_object.side_effect = put_object
        artifact = ArchiveArtifact(fileobj=io.BytesIO(b"PK\x05\x06archive"), size=15)
        artifact.read(4)
        assert S3Uploader(client).upload_artifact(artifact, "bucket", "key") == "v1"
        assert seen["body"] == b"PK\x05\x06archive"
