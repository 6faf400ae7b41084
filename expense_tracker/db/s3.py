import logging
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class ObjectStore:
    """
    One S3 bucket. Bytes never pass through the API for user files: clients
    upload and download with presigned URLs.
    """

    def __init__(self, client, bucket: str) -> None:
        self._s3 = client
        self.bucket = bucket

    def put(
        self,
        key: str,
        body: Union[bytes, str],
        content_type: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        self._s3.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=metadata or {},
        )

    def get(self, key: str) -> bytes:
        response = self._s3.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    def delete(self, key: str) -> None:
        self._s3.delete_object(Bucket=self.bucket, Key=key)

    def list_objects(self, prefix: str) -> List[Dict]:
        """Every object under the prefix, following continuation tokens."""
        objects: List[Dict] = []
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            objects.extend(page.get("Contents", []))
        return objects

    def presigned_upload_url(self, key: str, content_type: str, expires_in: int, metadata: Optional[Dict[str, str]] = None) -> str:
        params = {"Bucket": self.bucket, "Key": key, "ContentType": content_type}
        if metadata:
            params["Metadata"] = metadata
        return self._s3.generate_presigned_url("put_object", Params=params, ExpiresIn=expires_in)

    def presigned_download_url(self, key: str, expires_in: int) -> str:
        return self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )
