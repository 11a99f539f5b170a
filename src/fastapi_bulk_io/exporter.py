"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: exporter.py
@DateTime: 2026-03-02
@Docs: Cursor-driven exporter with size-bounded chunks.
基于游标、按大小分块的导出器。

Each call returns one chunk of comma-joined JSON records plus the cursor the
next call must resume from. The chunk is bounded by ``export_char_limit``:
a slice that overflows is retried at one tenth of its size until it fits or
is a single record. A single record that alone exceeds the limit is emitted
over the limit so every call makes progress.
每次调用返回一个逗号连接的 JSON 记录分块，以及下一次调用需要恢复的游标。
分块大小受 ``export_char_limit`` 约束：溢出的切片按十分之一的大小重试，直到
放得下或只剩一条记录。单条记录本身超过上限时会超限输出，以保证每次调用都有进展。
"""

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from fastapi_bulk_io.config import EXPORT_SHRINK_FACTOR, BulkIOConfig
from fastapi_bulk_io.exceptions import ImportExportError
from fastapi_bulk_io.intents import DataItem
from fastapi_bulk_io.schema import Model, Project
from fastapi_bulk_io.serializers import serialize_items, serialize_list_value, serialize_node_value
from fastapi_bulk_io.typing import FetchRowsFn, RecordSerializer


@dataclass(frozen=True, slots=True)
class ExportCursor:
    """
    Export resume position.
    导出恢复位置。

    Attributes:
        model_index: Index of the model in project order.
        model_index: 模型在项目中的顺序索引。
        row_offset: Row offset inside that model.
        row_offset: 模型内的行偏移。
    """

    model_index: int = 0
    row_offset: int = 0

    @property
    def is_done(self) -> bool:
        return self.model_index == -1 and self.row_offset == -1


START_CURSOR = ExportCursor(0, 0)
END_CURSOR = ExportCursor(-1, -1)


@dataclass(frozen=True, slots=True)
class ExportChunk:
    """
    One export chunk.
    单个导出分块。

    Attributes:
        out: Comma-joined JSON records.
        out: 逗号连接的 JSON 记录。
        cursor: Where the next call resumes, or ``(-1, -1)`` when done.
        cursor: 下一次调用的恢复位置；完成时为 ``(-1, -1)``。
        is_full: Whether the chunk stopped because of the size limit.
        is_full: 分块是否因大小上限而停止。
    """

    out: str
    cursor: ExportCursor
    is_full: bool = False


@dataclass(frozen=True, slots=True)
class DataItemsPage:
    items: Sequence[DataItem]
    has_more: bool


@dataclass(frozen=True, slots=True)
class PageResult:
    out: str
    next_index: int
    used: int
    is_full: bool


@dataclass(frozen=True, slots=True)
class ModelResult:
    out: str
    next_index: int
    end_row: int
    is_full: bool


def _join(out: str, text: str) -> str:
    if out and text:
        return f"{out},{text}"
    return out or text


class Exporter:
    """
    Exporter for node values and list values.
    节点值与列表值导出器。

    Lifecycle per call: resolve model -> fetch page -> serialize under the
    size limit -> advance page/model -> return chunk and cursor.
    每次调用的生命周期：解析模型 -> 读取分页 -> 在大小上限内序列化 ->
    推进分页/模型 -> 返回分块与游标。
    """

    def __init__(self, *, fetch_fn: FetchRowsFn, config: BulkIOConfig | None = None) -> None:
        """
        Initialize exporter.
        初始化导出器。

        Args:
            fetch_fn: Row fetch capability.
            fetch_fn: 数据行读取能力。
            config: Optional configuration.
            config: 可选配置。
        """
        self._fetch_fn = fetch_fn
        self.config = config or BulkIOConfig()

    async def export_nodes(self, *, project: Project, cursor: ExportCursor = START_CURSOR) -> ExportChunk:
        """
        Export one chunk of node values.
        导出一个节点值分块。

        Args:
            project: Project schema context.
            project: 项目模式上下文。
            cursor: Cursor returned by the previous call.
            cursor: 上一次调用返回的游标。

        Returns:
            ExportChunk: Chunk text and next cursor.
            ExportChunk: 分块文本与下一个游标。

        Raises:
            StorageFetchError: When a row fetch fails.
            StorageFetchError: 读取数据行失败时抛出。
        """
        return await self.export(project=project, cursor=cursor, serializer=serialize_node_value)

    async def export_list_values(self, *, project: Project, cursor: ExportCursor = START_CURSOR) -> ExportChunk:
        """
        Export one chunk of list values.
        导出一个列表值分块。
        """
        return await self.export(project=project, cursor=cursor, serializer=serialize_list_value)

    async def export(self, *, project: Project, cursor: ExportCursor, serializer: RecordSerializer) -> ExportChunk:
        """
        Run the chunking algorithm from ``cursor`` with the given serializer.
        使用给定序列化器从 ``cursor`` 开始执行分块算法。
        """
        if cursor.is_done:
            return ExportChunk(out="", cursor=END_CURSOR)
        models = project.models
        if not models and cursor == START_CURSOR:
            return ExportChunk(out="", cursor=END_CURSOR)
        if not 0 <= cursor.model_index < len(models) or cursor.row_offset < 0:
            raise ImportExportError(
                message=(
                    f"Invalid export cursor ({cursor.model_index}, {cursor.row_offset})"
                    f" / 非法导出游标 ({cursor.model_index}, {cursor.row_offset})"
                ),
                details={"model_index": cursor.model_index, "row_offset": cursor.row_offset},
                error_code="invalid_cursor",
            )

        out = ""
        index = 0
        model_index = cursor.model_index
        row_offset = cursor.row_offset
        while True:
            model = models[model_index]
            result = await self._result_for_model(model, out, index, row_offset, serializer)
            out, index = result.out, result.next_index
            if result.is_full:
                return ExportChunk(out=out, cursor=ExportCursor(model_index, result.end_row), is_full=True)
            if model_index < len(models) - 1:
                model_index += 1
                row_offset = 0
                continue
            return ExportChunk(out=out, cursor=END_CURSOR)

    async def fetch_page(self, model: Model, offset: int) -> DataItemsPage:
        """
        Fetch one page, asking for one extra row to learn whether more exist.
        读取一页数据，多请求一行以判断是否还有更多数据。
        """
        size = self.config.export_page_size
        rows = await self._fetch_fn(model=model, skip=offset, limit=size + 1)
        return DataItemsPage(items=list(rows[:size]), has_more=len(rows) > size)

    async def _result_for_model(
        self, model: Model, out: str, index: int, start_row: int, serializer: RecordSerializer
    ) -> ModelResult:
        offset = start_row
        while True:
            page = await self.fetch_page(model, offset)
            result = self.serialize_page(model, out, page, index, serializer)
            out, index = result.out, result.next_index
            if result.is_full:
                return ModelResult(out=out, next_index=index, end_row=offset + result.used, is_full=True)
            if page.has_more:
                offset += self.config.export_page_size
                continue
            return ModelResult(out=out, next_index=index, end_row=-1, is_full=False)

    def serialize_page(
        self, model: Model, out: str, page: DataItemsPage, index: int, serializer: RecordSerializer
    ) -> PageResult:
        """
        Append as much of ``page`` to ``out`` as fits under the size limit.
        在大小上限内把 ``page`` 尽可能多地追加到 ``out``。

        Args:
            model: Model of the page rows.
                分页行所属模型。
            out: Chunk text accumulated so far.
                目前已累积的分块文本。
            page: Fetched page.
                已读取的分页。
            index: Index of the next emitted record.
                下一条输出记录的索引。
            serializer: Record serializer.
                记录序列化器。

        Returns:
            PageResult: New text, next index, rows used, and whether the chunk is full.
            PageResult: 新文本、下一索引、已用行数以及分块是否已满。
        """
        limit = self.config.export_char_limit
        default_amount = self.config.export_page_size
        start = 0
        amount = default_amount
        while True:
            items = page.items[start : start + amount]
            text, next_index = serialize_items(serializer, model=model, items=items, start_index=index)
            combined = _join(out, text)
            if len(combined) > limit:
                if amount > 1:
                    amount = max(1, amount // EXPORT_SHRINK_FACTOR)
                    logger.debug("Export slice over limit on {}, retrying with batch size {}", model.name, amount)
                    continue
                if not out:
                    logger.debug(
                        "Single {} record {} exceeds export limit ({} > {})",
                        model.name,
                        items[0].id,
                        len(combined),
                        limit,
                    )
                    return PageResult(out=combined, next_index=next_index, used=start + len(items), is_full=True)
                return PageResult(out=out, next_index=index, used=start, is_full=True)

            out, index = combined, next_index
            start += len(items)
            if start < len(page.items):
                amount = default_amount
                continue
            return PageResult(out=out, next_index=index, used=start, is_full=False)
