"""S3 storage driver."""

import boto3
from typing import Any, Callable, Dict, List, Optional
from botocore.exceptions import ClientError

from ..context import RunContext
from ..errors import PathNotFoundError
from .driver import FileInfo, StorageDriver, normalize_path


NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound')

# delete_objects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


class S3Driver(StorageDriver):
    """Storage driver backed by an S3 compatible bucket."""

    name = "s3"

    def __init__(self, bucket: str, region: Optional[str] = None,
                 region_endpoint: Optional[str] = None,
                 access_key: Optional[str] = None, secret_key: Optional[str] = None,
                 root_directory: str = "", client=None):
        if not bucket:
            raise ValueError("s3 storage driver requires a bucket")
        self.bucket = bucket
        self.region = region or 'us-east-1'
        self.region_endpoint = region_endpoint
        self.access_key = access_key
        self.secret_key = secret_key
        self.root_directory = root_directory.strip('/')
        self._client = client

    @classmethod
    def from_parameters(cls, parameters: Dict[str, Any]) -> 'S3Driver':
        """Create a driver from the s3 section of a registry config."""
        return cls(
            bucket=parameters.get('bucket'),
            region=parameters.get('region'),
            region_endpoint=parameters.get('regionendpoint'),
            access_key=parameters.get('accesskey'),
            secret_key=parameters.get('secretkey'),
            root_directory=parameters.get('rootdirectory', '')
        )

    @property
    def client(self):
        """Lazy initialization of S3 client."""
        if self._client is None:
            s3_config = {
                'aws_access_key_id': self.access_key,
                'aws_secret_access_key': self.secret_key,
                'region_name': self.region
            }
            if self.region_endpoint:
                s3_config['endpoint_url'] = self.region_endpoint
            self._client = boto3.client('s3', **s3_config)
        return self._client

    def _key(self, path: str) -> str:
        relative = normalize_path(path)[1:]
        if self.root_directory:
            return f"{self.root_directory}/{relative}" if relative else self.root_directory
        return relative

    def _path(self, key: str) -> str:
        if self.root_directory:
            key = key[len(self.root_directory):]
        return normalize_path(key)

    def _dir_prefix(self, path: str) -> str:
        key = self._key(path)
        return key + '/' if key else ''

    @staticmethod
    def _is_not_found(error: ClientError) -> bool:
        return error.response.get('Error', {}).get('Code') in NOT_FOUND_CODES

    def get_content(self, ctx: RunContext, path: str) -> bytes:
        ctx.check()
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(path))
            return response['Body'].read()
        except ClientError as e:
            if self._is_not_found(e):
                raise PathNotFoundError(path, self.name)
            raise

    def put_content(self, ctx: RunContext, path: str, content: bytes):
        ctx.check()
        self.client.put_object(
            Bucket=self.bucket,
            Key=self._key(path),
            Body=content,
            ContentType='application/octet-stream'
        )

    def stat(self, ctx: RunContext, path: str) -> FileInfo:
        ctx.check()
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=self._key(path))
            return FileInfo(path=normalize_path(path), size=response.get('ContentLength', 0))
        except ClientError as e:
            if not self._is_not_found(e):
                raise

        response = self.client.list_objects_v2(
            Bucket=self.bucket,
            Prefix=self._dir_prefix(path),
            MaxKeys=1
        )
        if response.get('Contents') or response.get('CommonPrefixes'):
            return FileInfo(path=normalize_path(path), is_dir=True)
        raise PathNotFoundError(path, self.name)

    def list(self, ctx: RunContext, path: str) -> List[str]:
        ctx.check()
        prefix = self._dir_prefix(path)
        children = set()

        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter='/'):
            for common_prefix in page.get('CommonPrefixes', []):
                children.add(self._path(common_prefix['Prefix'].rstrip('/')))
            for obj in page.get('Contents', []):
                children.add(self._path(obj['Key']))

        if not children and normalize_path(path) != '/':
            raise PathNotFoundError(path, self.name)
        return sorted(children)

    def walk(self, ctx: RunContext, path: str, visit: Callable[[FileInfo], bool]):
        """Walk the tree from one flat listing of every key below path.

        Directories are derived from key prefixes instead of stat calls, so a
        walk costs one list request per page of keys. Keys come back in
        lexicographic order; a directory is visited before its first key.
        """
        ctx.check()
        base = normalize_path(path).rstrip('/')
        prefix = self._dir_prefix(path)
        seen_dirs = set()
        skipped_dirs = set()
        found = False

        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            ctx.check()
            for obj in page.get('Contents', []):
                found = True
                parts = obj['Key'][len(prefix):].split('/')
                if not parts[-1]:
                    # directory marker object
                    continue

                current = base
                pruned = False
                for part in parts[:-1]:
                    current = f"{current}/{part}"
                    if current in skipped_dirs:
                        pruned = True
                        break
                    if current not in seen_dirs:
                        seen_dirs.add(current)
                        if visit(FileInfo(path=current, is_dir=True)) is False:
                            skipped_dirs.add(current)
                            pruned = True
                            break

                if not pruned:
                    visit(FileInfo(path=f"{current}/{parts[-1]}", size=obj.get('Size', 0)))

        if not found and base:
            raise PathNotFoundError(path, self.name)

    def delete(self, ctx: RunContext, path: str):
        ctx.check()
        key = self._key(path)
        keys = []

        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=key):
            for obj in page.get('Contents', []):
                if obj['Key'] == key or obj['Key'].startswith(key + '/'):
                    keys.append(obj['Key'])

        if not keys:
            raise PathNotFoundError(path, self.name)

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            ctx.check()
            batch = keys[start:start + DELETE_BATCH_SIZE]
            response = self.client.delete_objects(
                Bucket=self.bucket,
                Delete={'Objects': [{'Key': k} for k in batch], 'Quiet': True}
            )
            errors = response.get('Errors') or []
            if errors:
                first = errors[0]
                raise RuntimeError(
                    f"Failed to delete {len(errors)} objects under {path}: "
                    f"{first.get('Key')}: {first.get('Message')}"
                )
