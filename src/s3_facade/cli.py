"""Command-line interface for s3-facade.

Thin wrapper that runs one façade operation per command.

Commands:
    - create-bucket: Create a bucket
    - delete-bucket: Delete a bucket, optionally emptying it first
    - upload: Upload a local file to s3://bucket/key
    - presign: Print a presigned GET/PUT/DELETE URL
    - delete-object: Delete s3://bucket/key
    - list-buckets: List bucket names

Connection options go before the command and override S3_FACADE_*
environment variables:

    s3-facade --endpoint-url http://127.0.0.1:9000 create-bucket sharks
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable, Optional

import typer

from . import __version__
from .core import settings
from .core.exceptions import ConfigError
from .objectstorage import S3ClientConfig, S3ClientManager, S3ObjectStore

app = typer.Typer(
    name="s3-facade",
    help="Bucket and object operations for S3-compatible storage.",
    no_args_is_help=True,
)


class PresignMethod(str, Enum):
    get = "get"
    put = "put"
    delete = "delete"


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        typer.echo(f"s3-facade {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    endpoint_url: Annotated[
        Optional[str], typer.Option("--endpoint-url", help="Custom S3 endpoint URL")
    ] = None,
    region_name: Annotated[
        Optional[str], typer.Option("--region", help="AWS region name")
    ] = None,
    access_key_id: Annotated[
        Optional[str], typer.Option("--access-key-id", help="AWS access key ID")
    ] = None,
    secret_access_key: Annotated[
        Optional[str],
        typer.Option("--secret-access-key", help="AWS secret access key"),
    ] = None,
    session_token: Annotated[
        Optional[str], typer.Option("--session-token", help="AWS session token")
    ] = None,
    aws_profile: Annotated[
        Optional[str], typer.Option("--aws-profile", help="AWS CLI profile name")
    ] = None,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, help="Show version."),
    ] = None,
) -> None:
    """
    S3-Facade: create/delete buckets, upload/delete objects, presign URLs.
    """
    overrides = {
        "endpoint_url": endpoint_url,
        "region_name": region_name,
        "access_key_id": access_key_id,
        "secret_access_key": secret_access_key,
        "session_token": session_token,
        "aws_profile": aws_profile,
    }
    config = S3ClientConfig.from_settings()
    ctx.obj = config.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )


def _run(ctx: typer.Context, action: Callable[[S3ObjectStore], Awaitable[Any]]) -> Any:
    """Run ``action`` against a store built from the context's config."""

    async def runner() -> Any:
        async with S3ObjectStore(ctx.obj) as store:
            return await action(store)

    try:
        return asyncio.run(runner())
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _parse_metadata(pairs: Optional[list[str]]) -> dict[str, str]:
    metadata = {}
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ConfigError(f"Metadata must be given as key=value, got: {pair}")
        metadata[name] = value
    return metadata


@app.command("create-bucket")
def create_bucket_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Bucket name")],
    exist_ok: Annotated[
        bool, typer.Option("--exist-ok", help="Succeed if the bucket already exists")
    ] = False,
) -> None:
    """Create a bucket."""
    created = _run(ctx, lambda store: store.create_bucket(name, exist_ok=exist_ok))
    if created:
        typer.echo(f"Created bucket {name}")
    else:
        typer.echo(f"Bucket {name} already exists")


@app.command("delete-bucket")
def delete_bucket_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Bucket name")],
    force: Annotated[
        bool, typer.Option("--force", help="Delete all objects in the bucket first")
    ] = False,
) -> None:
    """
    Delete a bucket.

    Without --force the store refuses to delete a non-empty bucket.
    """
    _run(ctx, lambda store: store.delete_bucket(name, force=force))
    typer.echo(f"Deleted bucket {name}")


@app.command("upload")
def upload_cmd(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Local file to upload")],
    target: Annotated[str, typer.Argument(help="Destination s3://bucket/key")],
    content_type: Annotated[
        Optional[str], typer.Option("--content-type", help="Content-Type header")
    ] = None,
    metadata: Annotated[
        Optional[list[str]],
        typer.Option("--metadata", help="User metadata as key=value (repeatable)"),
    ] = None,
) -> None:
    """
    Upload a file, replacing any object already stored under the key.

    Examples:
        s3-facade upload shark.jpg s3://sharks/shark.jpg --content-type image/jpeg
    """
    try:
        bucket, key = S3ClientManager.parse_s3_path(target)
        if not key:
            key = file.name
        user_metadata = _parse_metadata(metadata)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    _run(
        ctx,
        lambda store: store.upload_file(
            bucket, key, file, content_type=content_type, metadata=user_metadata
        ),
    )
    typer.echo(f"Uploaded {file} to s3://{bucket}/{key}")


@app.command("presign")
def presign_cmd(
    ctx: typer.Context,
    target: Annotated[str, typer.Argument(help="Object as s3://bucket/key")],
    expiry: Annotated[
        int, typer.Option("--expiry", help="URL lifetime in seconds")
    ] = settings.default_presign_expiry,
    method: Annotated[
        PresignMethod, typer.Option("--method", help="HTTP operation to sign")
    ] = PresignMethod.get,
) -> None:
    """Print a presigned URL for an object."""
    try:
        bucket, key = S3ClientManager.parse_s3_path(target)
        if not key:
            raise ConfigError(f"Object key missing from {target}")
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    signers = {
        PresignMethod.get: lambda store: store.get_object_presigned(
            bucket, key, expiry
        ),
        PresignMethod.put: lambda store: store.upload_object_presigned(
            bucket, key, expiry
        ),
        PresignMethod.delete: lambda store: store.delete_object_presigned(
            bucket, key, expiry
        ),
    }
    typer.echo(_run(ctx, signers[method]))


@app.command("delete-object")
def delete_object_cmd(
    ctx: typer.Context,
    target: Annotated[str, typer.Argument(help="Object as s3://bucket/key")],
) -> None:
    """Delete an object. Deleting a missing key is not an error."""
    try:
        bucket, key = S3ClientManager.parse_s3_path(target)
        if not key:
            raise ConfigError(f"Object key missing from {target}")
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    _run(ctx, lambda store: store.delete_object(bucket, key))
    typer.echo(f"Deleted s3://{bucket}/{key}")


@app.command("list-buckets")
def list_buckets_cmd(ctx: typer.Context) -> None:
    """List bucket names."""
    buckets = _run(ctx, lambda store: store.list_buckets())
    if buckets:
        for bucket in buckets:
            typer.echo(bucket.name)
    else:
        typer.echo("No buckets found.")


if __name__ == "__main__":
    app()
