"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: serializers.py
@DateTime: 2026-03-02
@Docs: Record serializers for export chunks.
导出分块的记录序列化器。
"""

from collections.abc import Sequence
from typing import Any

from fastapi_bulk_io.codecs import dumps, encode, loads
from fastapi_bulk_io.formats import ImportIdentifier, ImportListValue, ImportNodeValue
from fastapi_bulk_io.intents import DataItem
from fastapi_bulk_io.schema import IMPLICIT_FIELDS, Model
from fastapi_bulk_io.typing import RecordSerializer


def _identifier(model: Model, item: DataItem) -> ImportIdentifier:
    return ImportIdentifier(type_name=model.name, id=item.id)


def serialize_node_value(*, model: Model, item: DataItem, index: int) -> str | None:
    """Serialize one stored row as an ``ImportNodeValue`` line.
    将一条存储行序列化为 ``ImportNodeValue`` 行。

    List fields and null values are left out; ``createdAt``/``updatedAt`` are
    not classified against the model but are kept in the output when set.
    列表字段与空值不会输出；``createdAt``/``updatedAt`` 不参与模型字段分类，
    但有值时会保留在输出中。

    Args:
        model: Model the row belongs to.
            行所属模型。
        item: Stored row.
            存储行。
        index: Position of the record in the chunk.
            记录在分块中的位置。

    Returns:
        str: Compact JSON line.
            紧凑 JSON 行。

    Raises:
        SchemaError: When the row carries a field the model does not declare.
            行包含模型未声明的字段时抛出。
    """
    implicit = {k: v for k, v in item.values.items() if k in IMPLICIT_FIELDS and v is not None}
    values: dict[str, Any] = {}
    for name, value in item.values.items():
        if name in IMPLICIT_FIELDS or value is None:
            continue
        if model.field_by_name(name).is_list:
            continue
        values[name] = value
    values.update(implicit)
    node = ImportNodeValue(index=index, identifier=_identifier(model, item), values=values)
    return dumps(encode(node.to_wire()))


def serialize_list_value(*, model: Model, item: DataItem, index: int) -> str | None:
    """Serialize the list fields of one stored row as an ``ImportListValue`` line.
    将一条存储行的列表字段序列化为 ``ImportListValue`` 行。

    Returns None when the row has no list values.
    行中没有列表值时返回 None。
    """
    values: dict[str, list[Any]] = {}
    for name, value in item.values.items():
        if name in IMPLICIT_FIELDS or value is None:
            continue
        if not model.field_by_name(name).is_list:
            continue
        # stored as JSON text by some backends
        if isinstance(value, (str, bytes)):
            value = loads(value)
        values[name] = list(value)
    if not values:
        return None
    record = ImportListValue(index=index, identifier=_identifier(model, item), values=values)
    return dumps(encode(record.to_wire()))


def serialize_items(
    serializer: RecordSerializer, *, model: Model, items: Sequence[DataItem], start_index: int
) -> tuple[str, int]:
    """Serialize rows into comma-joined text.
    将多行序列化为逗号连接的文本。

    Args:
        serializer: Record serializer.
            记录序列化器。
        model: Model the rows belong to.
            行所属模型。
        items: Rows to serialize.
            要序列化的行。
        start_index: Index of the first emitted record.
            第一条输出记录的索引。

    Returns:
        tuple[str, int]: Joined text and the next record index.
            连接后的文本与下一条记录索引。
    """
    index = start_index
    lines: list[str] = []
    for item in items:
        line = serializer(model=model, item=item, index=index)
        if line is None:
            continue
        lines.append(line)
        index += 1
    return ",".join(lines), index
