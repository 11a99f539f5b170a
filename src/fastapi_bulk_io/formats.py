"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: formats.py
@DateTime: 2026-03-02
@Docs: Interchange record formats and value-type constants.
交换格式记录定义与值类型常量。

Wire names are camelCase (``typeName``, ``valueType``...); Python attributes
are snake_case. Both names are accepted on input.
线上字段名为驼峰（``typeName``、``valueType`` 等），Python 属性为下划线命名，
输入时两种命名均可。
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ValueType(StrEnum):
    """Value types accepted in an import bundle.
    导入包支持的值类型。
    """

    NODES = "nodes"
    RELATIONS = "relations"
    LIST_VALUES = "listvalues"


class ExportFileType(StrEnum):
    """Export streams.
    导出数据流类型。
    """

    NODES = "nodes"
    LISTS = "lists"


JSON_ALLOWED_MIME_TYPES: tuple[str, ...] = (
    "application/json",
    "text/json",
    "text/plain",
    "application/octet-stream",
)


class InterchangeModel(BaseModel):
    """Base model for interchange records.
    交换格式记录基类。
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump with wire (camelCase) names.
        按线上（驼峰）字段名导出。
        """
        return self.model_dump(by_alias=True)


class ImportIdentifier(InterchangeModel):
    """Stable reference to one record.
    单条记录的稳定引用。
    """

    type_name: str
    id: str


class ImportRelationSide(InterchangeModel):
    """One side of an imported relation.
    导入关系的一侧。
    """

    identifier: ImportIdentifier
    field_name: str


class ImportNodeValue(InterchangeModel):
    """
    Node record: non-list field values of one record.
    节点记录：单条记录的非列表字段值。

    Attributes:
        index: Position in the submitted batch.
        index: 在提交批次中的位置。
        identifier: Record identifier.
        identifier: 记录标识。
        values: Non-list field name to scalar value.
        values: 非列表字段名到标量值的映射。
    """

    index: int
    identifier: ImportIdentifier
    values: dict[str, Any] = Field(default_factory=dict)


class ImportRelation(InterchangeModel):
    """Relation record linking two identifiers.
    连接两个标识的关系记录。
    """

    index: int
    relation_name: str
    left: ImportRelationSide
    right: ImportRelationSide


class ImportListValue(InterchangeModel):
    """List record: full replacement of list field contents.
    列表记录：完整替换列表字段内容。
    """

    index: int
    identifier: ImportIdentifier
    values: dict[str, list[Any]] = Field(default_factory=dict)


class ImportBundle(InterchangeModel):
    """Decoded import payload.
    解码后的导入载荷。
    """

    value_type: ValueType
    values: list[Any]


RECORD_TYPES: dict[ValueType, type[InterchangeModel]] = {
    ValueType.NODES: ImportNodeValue,
    ValueType.RELATIONS: ImportRelation,
    ValueType.LIST_VALUES: ImportListValue,
}
