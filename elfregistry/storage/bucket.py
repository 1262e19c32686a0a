"""Bucket object store for S3-compatible object storage.

Object paths map to keys ``{key_prefix}/{path}`` in a single bucket.  Every
operation is one remote call (plus a ``head_object`` on delete); there is no
atomicity across objects, only per-object atomic puts, which S3-compatible
stores provide natively.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from elfregistry.errors import BackendIOError, ObjectNotFoundError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_not_found(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code", "")) in _NOT_FOUND_CODES


class BucketObjectStore:
    """Remote ``ObjectStore`` backed by an S3-compatible bucket.

    Parameters
    ----------
    bucket:
        Bucket name.
    key_prefix:
        Optional key prefix under which all objects live.  Leading and
        trailing slashes are ignored.
    client:
        A pre-built boto3 S3 client.  When omitted one is created from the
        ambient AWS credentials with *region_name* and *endpoint_url*.
    """

    name = "bucket"

    def __init__(
        self,
        bucket: str,
        key_prefix: str = "",
        *,
        client: Any = None,
        region_name: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        if not bucket.strip():
            raise ValueError("A bucket name is required for the bucket backend")
        self._bucket = bucket
        self._key_prefix = key_prefix.strip("/")
        if client is None:
            client = boto3.client(
                "s3", region_name=region_name, endpoint_url=endpoint_url
            )
        self._client = client
        logger.info(
            "Bucket object store ready (bucket=%s, prefix=%r)",
            self._bucket,
            self._key_prefix,
        )

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def key_prefix(self) -> str:
        return self._key_prefix

    def _key(self, path: str) -> str:
        if self._key_prefix:
            return f"{self._key_prefix}/{path}"
        return path

    def _strip_prefix(self, key: str) -> str:
        if self._key_prefix:
            return key.removeprefix(f"{self._key_prefix}/")
        return key

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, path: str) -> bytes:
        key = self._key(path)
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()
        except ClientError as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(path) from exc
            raise BackendIOError(f"Failed to read s3://{self._bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendIOError(f"Failed to read s3://{self._bucket}/{key}: {exc}") from exc

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, path: str, data: bytes) -> None:
        key = self._key(path)
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=data)
        except (ClientError, BotoCoreError) as exc:
            raise BackendIOError(f"Failed to write s3://{self._bucket}/{key}: {exc}") from exc
        logger.debug("Wrote s3://%s/%s (%d bytes)", self._bucket, key, len(data))

    def delete(self, path: str) -> None:
        key = self._key(path)
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(path) from exc
            raise BackendIOError(f"Failed to stat s3://{self._bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendIOError(f"Failed to stat s3://{self._bucket}/{key}: {exc}") from exc

        try:
            self._client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise BackendIOError(f"Failed to delete s3://{self._bucket}/{key}: {exc}") from exc
        logger.debug("Deleted s3://%s/%s", self._bucket, key)

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def list(self, prefix: str = "") -> list[str]:
        list_prefix = self._key(prefix) if prefix else (
            f"{self._key_prefix}/" if self._key_prefix else ""
        )
        objects: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=list_prefix):
                for item in page.get("Contents", []):
                    objects.append(self._strip_prefix(item["Key"]))
        except (ClientError, BotoCoreError) as exc:
            raise BackendIOError(
                f"Failed to list s3://{self._bucket}/{list_prefix}: {exc}"
            ) from exc
        objects.sort()
        return objects
