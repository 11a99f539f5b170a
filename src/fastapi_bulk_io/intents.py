"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: intents.py
@DateTime: 2026-03-02
@Docs: Storage records, write intents and write outcomes.
存储记录、写入意图与写入结果。

A write intent is a deferred description of one database write. The import
pipeline only builds intents; a storage executor (see ``contrib.sqlalchemy``)
turns them into statements and reports one ``WriteOutcome`` per intent.
写入意图是对一次数据库写入的延迟描述。导入流水线只负责构建意图，
存储执行器（见 ``contrib.sqlalchemy``）将其转换为语句并为每个意图返回一个 ``WriteOutcome``。
"""

from dataclasses import dataclass, field
from typing import Any

from fastapi_bulk_io.exceptions import ImportExportError

RELAY_TABLE = "_RelayId"


@dataclass(frozen=True, slots=True)
class DataItem:
    """
    Stored record.
    存储中的记录。

    Attributes:
        id: Record id.
        id: 记录 ID。
        values: Field name to value; None means null.
        values: 字段名到值的映射；None 表示空值。
    """

    id: str
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CreateDataItem:
    """Insert one record row.
    插入一条记录行。
    """

    model_name: str
    values: dict[str, Any]


@dataclass(frozen=True, slots=True)
class CreateRelayId:
    """Insert one relay-id index row (record id -> owning model id).
    插入一条 relay-id 索引行（记录 ID -> 所属模型 ID）。
    """

    id: str
    stable_model_identifier: str


@dataclass(frozen=True, slots=True)
class MirrorFieldValue:
    """
    Mirror entry copied onto a relation row.
    复制到关系行上的镜像条目。

    Attributes:
        relation_column_name: Column on the relation table.
        relation_column_name: 关系表中的列名。
        model_column_name: Source column on the model table.
        model_column_name: 模型表中的源列名。
        model_name: Source model (table) name.
        model_name: 源模型（表）名。
        id: Source record id.
        id: 源记录 ID。
    """

    relation_column_name: str
    model_column_name: str
    model_name: str
    id: str


@dataclass(frozen=True, slots=True)
class CreateRelationRow:
    """Insert one relation row plus its mirrored values.
    插入一条关系行及其镜像值。
    """

    relation_id: str
    id: str
    a: str
    b: str
    mirrors: tuple[MirrorFieldValue, ...] = ()


@dataclass(frozen=True, slots=True)
class UpdateListValues:
    """Replace the full content of list fields on one record.
    完整替换一条记录上列表字段的内容。
    """

    model_name: str
    id: str
    values: dict[str, list[Any]]


type WriteIntent = CreateDataItem | CreateRelayId | CreateRelationRow | UpdateListValues


@dataclass(frozen=True, slots=True)
class WriteOutcome:
    """
    Outcome of one write intent.
    单个写入意图的结果。

    Attributes:
        error: The failure, or None on success.
        error: 失败信息；成功时为 None。
    """

    error: ImportExportError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
