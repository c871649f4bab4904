"""Unit tests for storage.aws.AwsFileStorage with a mocked boto3 session."""

import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from uacloudlib.storage import StorageConfig
from uacloudlib.storage.aws import AwsFileStorage


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    client.put_object.return_value = {"ResponseMetadata": {"HTTPStatusCode": 200}}
    client.get_object.return_value = {"Body": io.BytesIO(b"<UANodeSet/>")}
    return client


@pytest.fixture
def session_cls(s3_client):
    with patch("uacloudlib.storage.aws.boto3.Session") as session_cls:
        session_cls.return_value.client.return_value = s3_client
        yield session_cls


@pytest.fixture
def storage() -> AwsFileStorage:
    return AwsFileStorage(
        StorageConfig(kind="aws", connection_string="s3://nodesets/prod/", region="eu-west-1")
    )


class TestAwsFileStorageInit:
    def test_requires_bucket(self):
        with pytest.raises(ValueError, match="bucket"):
            AwsFileStorage(StorageConfig())

    def test_repr(self, storage):
        assert repr(storage) == "AwsFileStorage(bucket=nodesets, prefix='prod/')"


class TestAwsOperations:
    """find / upload / download against a mocked S3 client."""

    async def test_find(self, storage, session_cls, s3_client):
        assert await storage.find("42") == "42"
        s3_client.head_object.assert_called_once_with(Bucket="nodesets", Key="prod/42")

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    async def test_find_missing(self, storage, session_cls, s3_client, code):
        s3_client.head_object.side_effect = _client_error(code)
        assert await storage.find("42") is None

    async def test_find_access_denied(self, storage, session_cls, s3_client):
        s3_client.head_object.side_effect = _client_error("AccessDenied")
        assert await storage.find("42") is None

    async def test_upload(self, storage, session_cls, s3_client):
        assert await storage.upload("42", "<UANodeSet/>") == "42"
        s3_client.put_object.assert_called_once_with(
            Bucket="nodesets", Key="prod/42", Body=b"<UANodeSet/>"
        )

    async def test_upload_rejected_status(self, storage, session_cls, s3_client):
        s3_client.put_object.return_value = {"ResponseMetadata": {"HTTPStatusCode": 503}}
        assert await storage.upload("42", "x") == ""

    async def test_upload_network_error(self, storage, session_cls, s3_client):
        s3_client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3")
        assert await storage.upload("42", "x") == ""

    async def test_download(self, storage, session_cls, s3_client):
        assert await storage.download("42") == "<UANodeSet/>"
        s3_client.get_object.assert_called_once_with(Bucket="nodesets", Key="prod/42")

    async def test_download_missing(self, storage, session_cls, s3_client):
        s3_client.get_object.side_effect = _client_error("NoSuchKey", "GetObject")
        assert await storage.download("42") == ""

    async def test_client_uses_region_and_endpoint(self, session_cls, s3_client):
        storage = AwsFileStorage(
            StorageConfig(
                kind="aws", bucket="b", region="eu-west-1", endpoint_url="http://minio:9000"
            )
        )
        await storage.find("1")
        session_cls.assert_called_once_with(region_name="eu-west-1")
        kwargs = session_cls.return_value.client.call_args.kwargs
        assert kwargs["endpoint_url"] == "http://minio:9000"
        assert kwargs["region_name"] == "eu-west-1"
        s3_client.head_object.assert_called_once_with(Bucket="b", Key="1")


class TestAssumeRole:
    """STS role assumption when a role ARN is configured."""

    async def test_assumes_role(self, session_cls, s3_client):
        sts = MagicMock()
        sts.assume_role.return_value = {
            "Credentials": {
                "AccessKeyId": "AKIA",
                "SecretAccessKey": "secret",
                "SessionToken": "token",
            }
        }
        session_cls.return_value.client.side_effect = lambda service, **_: (
            sts if service == "sts" else s3_client
        )
        storage = AwsFileStorage(
            StorageConfig(
                kind="aws",
                bucket="b",
                region="eu-west-1",
                role_arn="arn:aws:iam::123456789012:role/catalog",
                session_duration=900,
            )
        )

        assert await storage.find("1") == "1"
        sts.assume_role.assert_called_once_with(
            RoleArn="arn:aws:iam::123456789012:role/catalog",
            RoleSessionName="S3AccessRole",
            DurationSeconds=900,
        )
        session_cls.assert_called_with(
            aws_access_key_id="AKIA",
            aws_secret_access_key="secret",
            aws_session_token="token",
            region_name="eu-west-1",
        )
