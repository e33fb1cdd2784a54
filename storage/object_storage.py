"""S3 compatible object storage returning public URLs."""

from __future__ import annotations

import mimetypes
from pathlib import PurePosixPath
from typing import IO

import boto3
from botocore.client import Config as BotoConfig
from werkzeug.utils import secure_filename

from .abstract_storage import AbstractStorage


class ObjectStorage(AbstractStorage):
    """Store files in a bucket and reference them by public URL."""

    def __init__(
        self,
        *,
        bucket: str,
        public_base: str,
        endpoint: str | None = None,
        region: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client=None,
    ):
        if not (public_base or "").startswith(("http://", "https://")):
            raise ValueError(
                "OBJECT_STORAGE_PUBLIC_BASE must be an http(s) URL when "
                "OBJECT_STORAGE_BUCKET is set."
            )
        self.bucket = bucket
        self.public_base = public_base.rstrip("/")
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=BotoConfig(signature_version="s3v4"),
        )

    def _key_from_reference(self, reference: str) -> str | None:
        if not reference.startswith(self.public_base + "/"):
            return None
        return reference[len(self.public_base) + 1:]

    def save(self, file_obj: IO[bytes], directory: str, filename: str) -> str:
        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        key = str(PurePosixPath(directory) / safe_name)
        content_type = mimetypes.guess_type(safe_name)[0] or "application/octet-stream"
        stream = getattr(file_obj, "stream", file_obj)
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=stream.read(),
            ACL="public-read",
            ContentType=content_type,
        )
        return f"{self.public_base}/{key}"

    def delete(self, reference: str) -> None:
        key = self._key_from_reference(reference)
        if key:
            self.client.delete_object(Bucket=self.bucket, Key=key)

    def delete_directory(self, directory: str) -> None:
        prefix = directory.rstrip("/") + "/"
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            objects = [{"Key": item["Key"]} for item in page.get("Contents", [])]
            if objects:
                self.client.delete_objects(Bucket=self.bucket, Delete={"Objects": objects})

    def exists(self, reference: str) -> bool:
        key = self._key_from_reference(reference)
        if not key:
            return False
        response = self.client.list_objects_v2(Bucket=self.bucket, Prefix=key, MaxKeys=1)
        return any(item["Key"] == key for item in response.get("Contents", []))
