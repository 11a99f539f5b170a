"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: service.py
@DateTime: 2026-03-02
@Docs: Bulk import/export service facade.
批量导入导出服务门面。

Entry points called by the request layer of the API platform.
API 平台请求层调用的入口。

This module provides ``ImportExportService`` which wires the importer and
exporter to storage capabilities and adds the request-facing concerns:

该模块提供 ``ImportExportService``，将导入器与导出器连接到存储能力，
并补充面向请求的处理：

        - Import a decoded JSON bundle and report failed records.
            导入已解码的 JSON 导入包并报告失败记录。
        - Import an uploaded JSON bundle (size and content-type checks).
            导入上传的 JSON 导入包（校验大小与内容类型）。
        - Optional per-project Redis lock so one project runs one import at a time.
            可选的项目级 Redis 锁，保证同一项目同一时间只执行一个导入。
        - Export one chunk of nodes or list values from a cursor.
            从游标开始导出一个节点或列表值分块。
"""

import inspect
from collections.abc import Mapping
from typing import Any, Protocol

import uuid6
from fastapi import UploadFile
from loguru import logger

from fastapi_bulk_io.codecs import loads
from fastapi_bulk_io.config import BulkIOConfig, resolve_config
from fastapi_bulk_io.exceptions import ImportExportError
from fastapi_bulk_io.exporter import ExportChunk, Exporter
from fastapi_bulk_io.formats import JSON_ALLOWED_MIME_TYPES, ExportFileType
from fastapi_bulk_io.importer import Importer
from fastapi_bulk_io.schema import Project
from fastapi_bulk_io.schemas import CursorModel, ExportRequest, ExportResponse, ImportResponse
from fastapi_bulk_io.typing import ExecuteBatchFn, FetchRowsFn


class RedisLike(Protocol):
    """Minimal Redis client protocol for the import lock.

    导入锁使用的最小 Redis 客户端协议。

    Methods may return plain values or awaitables (redis-py sync or asyncio).
    方法可以返回普通值或可 await 对象（兼容 redis-py 同步与 asyncio 客户端）。
    """

    def set(self, *args: Any, **kwargs: Any) -> Any: ...

    def get(self, *args: Any, **kwargs: Any) -> Any: ...

    def delete(self, *args: Any, **kwargs: Any) -> Any: ...


async def _maybe_await(value: Any) -> Any:
    """Await a value if it is awaitable, otherwise return it as-is.

    如果是 awaitable，await 后返回；否则直接返回。
    """
    if inspect.isawaitable(value):
        return await value
    return value


class ImportExportService:
    """Bulk import/export service.

    批量导入导出服务。

    Examples:
        >>> from fastapi_bulk_io import ImportExportService
        >>> # svc = ImportExportService(execute_fn=executor, fetch_fn=fetcher)
        >>> # await svc.import_bundle(project=project, payload={"valueType": "nodes", "values": []})
    """

    def __init__(
        self,
        *,
        execute_fn: ExecuteBatchFn,
        fetch_fn: FetchRowsFn,
        redis_client: RedisLike | None = None,
        config: BulkIOConfig | None = None,
    ) -> None:
        """
        Initialize the service.
        初始化服务。

        Args:
            execute_fn: Batch execution capability.
                批量执行能力。
            fetch_fn: Row fetch capability.
                数据行读取能力。
            redis_client: Optional Redis client for the per-project import lock.
                可选 Redis 客户端，用于项目级导入锁。
            config: Optional configuration.
                可选配置。
        """
        self.redis_client = redis_client
        self.config = config or resolve_config()
        self.importer = Importer(execute_fn=execute_fn)
        self.exporter = Exporter(fetch_fn=fetch_fn, config=self.config)

    async def import_bundle(self, *, project: Project, payload: Mapping[str, Any]) -> ImportResponse:
        """Import a decoded bundle.

        导入已解码的导入包。

        Args:
            project: Project schema context.
                项目模式上下文。
            payload: ``{"valueType": ..., "values": [...]}``.
                ``{"valueType": ..., "values": [...]}``。

        Returns:
            ImportResponse: Failure report.
                失败报告。

        Raises:
            DecodingError: When the bundle cannot be decoded.
                导入包无法解码时抛出。
            ImportExportError: When another import holds the project lock.
                其他导入持有项目锁时抛出。
        """
        lock_key = f"{self.config.lock_namespace}:lock:{project.id}"
        # Unique value so only our own lock is released.
        lock_value = str(uuid6.uuid7())
        lock_acquired = False
        if self.redis_client is not None:
            result = await _maybe_await(
                self.redis_client.set(lock_key, lock_value, ex=self.config.lock_ttl_seconds, nx=True)
            )
            lock_acquired = bool(result)
            if not lock_acquired:
                raise ImportExportError(
                    message="Import in progress for this project, retry later / 该项目正在导入，请稍后重试",
                    status_code=409,
                    details={"project": project.id},
                    error_code="import_locked",
                )
        try:
            report = await self.importer.run(project=project, payload=payload)
            return ImportResponse(
                value_type=report.value_type, total_records=report.total_records, failures=report.failures
            )
        finally:
            if self.redis_client is not None and lock_acquired:
                # Non-atomic GET+DELETE; a lock that expired and was re-taken is left alone.
                current = await _maybe_await(self.redis_client.get(lock_key))
                if isinstance(current, bytes):
                    current = current.decode()
                if current is not None and str(current) == lock_value:
                    await _maybe_await(self.redis_client.delete(lock_key))

    async def import_upload(self, *, project: Project, file: UploadFile) -> ImportResponse:
        """Import an uploaded JSON bundle.

        导入上传的 JSON 导入包。

        Args:
            project: Project schema context.
                项目模式上下文。
            file: FastAPI UploadFile holding the bundle JSON.
                包含导入包 JSON 的 FastAPI UploadFile。

        Returns:
            ImportResponse: Failure report.
                失败报告。

        Raises:
            ImportExportError: When the upload is too large or not JSON.
                上传过大或不是 JSON 时抛出。
            DecodingError: When the body is not a valid bundle.
                内容不是合法导入包时抛出。
        """
        content_type = str(file.content_type or "").split(";")[0].strip().lower()
        if content_type and content_type not in JSON_ALLOWED_MIME_TYPES:
            raise ImportExportError(
                message=f"Unsupported content type: {content_type} / 不支持的内容类型: {content_type}",
                status_code=415,
                error_code="unsupported_media_type",
            )

        max_bytes = int(self.config.max_upload_mb) * 1024 * 1024
        chunks: list[bytes] = []
        size = 0
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                raise ImportExportError(message="File too large / 上传文件过大", status_code=413)
            chunks.append(chunk)

        payload = loads(b"".join(chunks))
        return await self.import_bundle(project=project, payload=payload)

    async def export(self, *, project: Project, request: ExportRequest) -> ExportResponse:
        """Export one chunk.

        导出一个分块。

        Args:
            project: Project schema context.
                项目模式上下文。
            request: File type and cursor from the previous response.
                文件类型以及上一次响应返回的游标。

        Returns:
            ExportResponse: Chunk text and next cursor.
                分块文本与下一个游标。

        Raises:
            StorageFetchError: When a row fetch fails.
                读取数据行失败时抛出。
        """
        cursor = request.cursor.to_cursor()
        chunk: ExportChunk
        if request.file_type == ExportFileType.LISTS:
            chunk = await self.exporter.export_list_values(project=project, cursor=cursor)
        else:
            chunk = await self.exporter.export_nodes(project=project, cursor=cursor)
        logger.info(
            "Exported {} chunk for project {}: cursor {} -> {} ({} chars)",
            request.file_type,
            project.id,
            (cursor.model_index, cursor.row_offset),
            (chunk.cursor.model_index, chunk.cursor.row_offset),
            len(chunk.out),
        )
        return ExportResponse(out=chunk.out, cursor=CursorModel.from_cursor(chunk.cursor), is_full=chunk.is_full)
