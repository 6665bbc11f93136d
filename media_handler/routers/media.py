import inspect
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
import structlog

from media_handler.config import MediaHandlerConfig
from media_handler.schemas.media import (
    DeleteMediaResponse,
    MediaItem,
    MediaListError,
    MediaListResponse,
    UnauthorizedResponse,
)
from media_handler.services.media_transform import s3_to_media_item
from media_handler.services.s3_service import S3Service, find_error_message

logger = structlog.get_logger()

ROOT_DIRECTORY_SENTINELS = ("", "/", '""')

STAGING_FILENAME = "upload"


def is_root_directory(directory: Optional[str]) -> bool:
    return directory is None or directory in ROOT_DIRECTORY_SENTINELS


def parse_limit(raw: Optional[str], default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        limit = int(raw)
    except ValueError:
        limit = 0
    if limit < 1:
        raise HTTPException(
            status_code=400,
            detail="limit must be a positive integer"
        )
    return limit


def media_key(segments: List[str]) -> Optional[str]:
    """
    Pick the storage key out of the `media` query parameter.

    The first segment is a route name and is discarded. A single value is
    split on its first slash, so `media/assets/cat.png` yields
    `assets/cat.png`.
    """
    if len(segments) == 1:
        segments = segments[0].split("/", 1)
    if len(segments) < 2 or not segments[1]:
        return None
    return segments[1]


def upload_key(directory: str, filename: str) -> str:
    if directory.startswith("/"):
        directory = directory[1:]
    return directory + filename


def staging_name(filename: str) -> str:
    name = Path(filename).name
    if name in ("", ".", ".."):
        return STAGING_FILENAME
    return name


class UploadProgress:
    """boto3 transfer callback; progress is only logged."""

    def __init__(self, key: str, total: int):
        self.key = key
        self.total = total
        self.loaded = 0
        self._lock = threading.Lock()

    def __call__(self, bytes_amount: int) -> None:
        with self._lock:
            self.loaded += bytes_amount
            logger.debug(
                "Upload progress",
                key=self.key,
                loaded=self.loaded,
                total=self.total
            )


async def list_media(
    request: Request,
    config: MediaHandlerConfig,
    s3_service: S3Service
) -> Response:
    directory = request.query_params.get("directory")
    limit = parse_limit(request.query_params.get("limit"), config.default_limit)
    offset = request.query_params.get("offset") or None
    prefix = "" if is_root_directory(directory) else directory

    try:
        objects, next_marker = await run_in_threadpool(
            s3_service.list_objects, prefix, limit, offset
        )
        files = [s3_to_media_item(obj, config) for obj in objects]
    except Exception as e:
        message = find_error_message(e)
        logger.error("Failed to list media", error=message, prefix=prefix)
        return JSONResponse(
            status_code=500,
            content=MediaListError(e=message).model_dump()
        )

    # Directory entries are not synthesized; only files are listed.
    folders: List[MediaItem] = []

    logger.info("Listed media", prefix=prefix, count=len(files))
    body = MediaListResponse(items=folders + files, offset=next_marker)
    return JSONResponse(body.model_dump(exclude_none=True))


async def upload_media(
    request: Request,
    config: MediaHandlerConfig,
    s3_service: S3Service
) -> Response:
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile) or not upload.filename:
        raise HTTPException(status_code=400, detail="A file field is required")

    directory = form.get("directory")
    key = upload_key(directory if isinstance(directory, str) else "", upload.filename)

    try:
        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir) / staging_name(upload.filename)

            with open(temp_path, "wb") as buffer:
                await run_in_threadpool(shutil.copyfileobj, upload.file, buffer)

            progress = UploadProgress(key, os.path.getsize(temp_path))
            result = await run_in_threadpool(
                s3_service.upload_file,
                str(temp_path),
                key,
                upload.content_type,
                progress
            )
    except Exception as e:
        logger.error("Failed to upload media", error=str(e), key=key)
        return Response(status_code=500)
    finally:
        await upload.close()

    logger.info("Uploaded media", key=key)
    return JSONResponse(result)


async def delete_media(
    request: Request,
    config: MediaHandlerConfig,
    s3_service: S3Service
) -> Response:
    key = media_key(request.query_params.getlist("media"))
    if key is None:
        raise HTTPException(
            status_code=400,
            detail="media must name the object to delete"
        )

    try:
        await run_in_threadpool(s3_service.delete_object, key)
    except Exception as e:
        logger.error("Failed to delete media", error=str(e), key=key)
        return Response(status_code=500)

    logger.info("Deleted media", key=key)
    # public_id is the field name the CMS media store reads back
    return JSONResponse(DeleteMediaResponse(public_id=key).model_dump())


def _copy_headers(source: Response, target: Response) -> None:
    for name, value in source.raw_headers:
        if name not in (b"content-length", b"content-type"):
            target.raw_headers.append((name, value))


def create_media_handler(config: MediaHandlerConfig, s3_service: S3Service):
    """
    Build the request handler for the media endpoint.

    The handler runs the configured authorization predicate, then routes
    GET to listing, POST to upload and DELETE to removal. Any other method
    gets a 404.
    """

    async def media_handler(request: Request) -> Response:
        scratch = Response()
        is_authorized = config.authorized(request, scratch)
        if inspect.isawaitable(is_authorized):
            is_authorized = await is_authorized

        try:
            response = await _dispatch(request, is_authorized)
        except HTTPException as e:
            response = JSONResponse(
                status_code=e.status_code,
                content={"detail": e.detail},
                headers=e.headers
            )

        _copy_headers(scratch, response)
        return response

    async def _dispatch(request: Request, is_authorized: bool) -> Response:
        if not is_authorized:
            logger.warning(
                "Unauthorized media request",
                method=request.method,
                path=request.url.path
            )
            response = JSONResponse(
                status_code=401,
                content=UnauthorizedResponse().model_dump()
            )
        elif request.method == "GET":
            response = await list_media(request, config, s3_service)
        elif request.method == "POST":
            response = await upload_media(request, config, s3_service)
        elif request.method == "DELETE":
            response = await delete_media(request, config, s3_service)
        else:
            response = Response(status_code=404)
        return response

    return media_handler


def create_media_router(
    config: MediaHandlerConfig,
    s3_service: S3Service,
    prefix: str = "/media"
) -> APIRouter:
    router = APIRouter(tags=["media"])
    # No method list, so every method reaches the handler and is authorized
    # before unsupported ones get a 404.
    router.add_route(
        prefix,
        create_media_handler(config, s3_service),
        include_in_schema=False
    )
    return router
