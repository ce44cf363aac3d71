import abc
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

PRESIGNED_URL_EXPIRES_IN = 60 * 5


class ObjectStoreGateway(abc.ABC):
    @abc.abstractmethod
    def issue_upload_url(self, bucket: str, key: str, content_type: str) -> str:
        pass

    @abc.abstractmethod
    def issue_download_url(self, bucket: str, key: str) -> str:
        pass

    @abc.abstractmethod
    def delete_object(self, bucket: str, key: str) -> None:
        pass


def get_s3_client(region=None, access_key_id=None, secret_access_key=None):
    return boto3.client(
        's3',
        region_name=region,
        aws_access_key_id=access_key_id or None,
        aws_secret_access_key=secret_access_key or None,
        config=Config(signature_version='s3v4'),
    )


class S3ObjectStoreGateway(ObjectStoreGateway):
    """
    Pre-signed PUT/GET URLs and direct deletes against S3.
    No retries: a failure surfaces as StoreUnavailable.
    """

    def __init__(self, client, expires_in: int = PRESIGNED_URL_EXPIRES_IN):
        self._client = client
        self.expires_in = expires_in

    def issue_upload_url(self, bucket: str, key: str, content_type: str) -> str:
        return self._presign(
            'put_object',
            {'Bucket': bucket, 'Key': key, 'ContentType': content_type},
        )

    def issue_download_url(self, bucket: str, key: str) -> str:
        return self._presign('get_object', {'Bucket': bucket, 'Key': key})

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete s3://{bucket}/{key}: {e}")
            raise StoreUnavailable(f'Failed to delete object: {e}')

    def _presign(self, client_method, params):
        try:
            return self._client.generate_presigned_url(
                client_method,
                Params=params,
                ExpiresIn=self.expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to presign {client_method} for s3://{params['Bucket']}/{params['Key']}: {e}")
            raise StoreUnavailable(f'Failed to sign URL: {e}')
