"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: typing.py
@DateTime: 2026-03-02
@Docs: Shared protocols for storage capabilities.
存储能力共享协议。
"""

from collections.abc import Sequence
from typing import Protocol

from fastapi_bulk_io.intents import DataItem, WriteIntent, WriteOutcome
from fastapi_bulk_io.schema import Model


class FetchRowsFn(Protocol):
    """
    Row fetch function protocol.
    数据行读取函数协议。

    Args:
        model: Model whose rows are read.
        model: 要读取的模型。
        skip: Rows to skip.
        skip: 跳过的行数。
        limit: Maximum rows to return.
        limit: 最多返回的行数。

    Returns:
        Sequence[DataItem]: Rows in a stable order.
        Sequence[DataItem]: 按稳定顺序返回的数据行。

    Raises:
        StorageFetchError: When the read fails.
        StorageFetchError: 读取失败时抛出。
    """

    async def __call__(self, *, model: Model, skip: int, limit: int) -> Sequence[DataItem]: ...


class ExecuteBatchFn(Protocol):
    """
    Batch execution function protocol.
    批量执行函数协议。

    One outcome per intent, in submission order. A failed intent must not
    prevent later intents from running.
    每个意图对应一个结果，顺序与提交顺序一致；单个意图失败不得阻止后续意图执行。

    Returns:
        list[WriteOutcome]: Per-intent outcomes.
        list[WriteOutcome]: 每个意图的结果。
    """

    async def __call__(self, intents: Sequence[WriteIntent]) -> list[WriteOutcome]: ...


class RecordSerializer(Protocol):
    """
    Export record serializer protocol.
    导出记录序列化器协议。

    Returns:
        str | None: One JSON line, or None when the row contributes nothing.
        str | None: 一行 JSON；该行无可导出内容时返回 None。
    """

    def __call__(self, *, model: Model, item: DataItem, index: int) -> str | None: ...
