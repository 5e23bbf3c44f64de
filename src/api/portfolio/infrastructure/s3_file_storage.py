"""S3-compatible implementation of the FileStorage port.

Deleted files are not removed. Their objects are tagged ``Status=SoftDeleted``
and a bucket lifecycle rule filtering on that tag expires them once the
retention window has elapsed.

Supports AWS S3, MinIO, and other S3-compatible object storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from portfolio.domain.value_objects import DeletionTag
from portfolio.ports.file_storage import FileTaggingError

if TYPE_CHECKING:
    import aioboto3

SOFT_DELETED_STATUS = "SoftDeleted"


def build_tag_set(tag: DeletionTag) -> list[dict[str, str]]:
    """Build the S3 object tag set for a deletion tag."""
    return [
        {"Key": "Status", "Value": SOFT_DELETED_STATUS},
        {"Key": "DeletedAt", "Value": tag.tagged_at.isoformat()},
        {"Key": "ExpiryDays", "Value": str(tag.retention_days)},
    ]


class S3FileStorage:
    """Tags S3 objects for delayed expiry using aioboto3.

    Credentials fall back to the AWS SDK defaults when not given.
    """

    def __init__(
        self,
        endpoint_url: str | None = None,
        region_name: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
    ):
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self._session: "aioboto3.Session | None" = None

    async def _get_session(self) -> "aioboto3.Session":
        """Get or create aioboto3 session."""
        if self._session is None:
            import aioboto3

            self._session = aioboto3.Session(
                aws_access_key_id=self.aws_access_key_id,
                aws_secret_access_key=self.aws_secret_access_key,
                region_name=self.region_name,
            )
        return self._session

    async def tag_for_expiry(self, tag: DeletionTag) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        session = await self._get_session()
        try:
            async with session.client("s3", endpoint_url=self.endpoint_url) as s3:
                await s3.put_object_tagging(
                    Bucket=tag.bucket_ref,
                    Key=tag.object_key,
                    Tagging={"TagSet": build_tag_set(tag)},
                )
        except (BotoCoreError, ClientError) as e:
            raise FileTaggingError(
                f"Failed to tag s3://{tag.bucket_ref}/{tag.object_key}: {e}"
            ) from e
