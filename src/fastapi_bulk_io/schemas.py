"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: schemas.py
@DateTime: 2026-03-02
@Docs: Request/response schemas for the import/export service.
导入导出服务的请求/响应模型。
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fastapi_bulk_io.exporter import ExportCursor
from fastapi_bulk_io.formats import ExportFileType, ValueType


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CursorModel(_Schema):
    """
    Export cursor on the wire.
    线上导出游标。
    """

    model_index: int = 0
    row_offset: int = 0

    @classmethod
    def from_cursor(cls, cursor: ExportCursor) -> "CursorModel":
        return cls(model_index=cursor.model_index, row_offset=cursor.row_offset)

    def to_cursor(self) -> ExportCursor:
        return ExportCursor(self.model_index, self.row_offset)


class ImportResponse(_Schema):
    """
    Import response.
    导入响应。

    Attributes:
        value_type: Bundle value type.
        value_type: 导入包值类型。
        total_records: Records in the bundle.
        total_records: 导入包中的记录数。
        failures: Failure descriptions (``Index: i Message: ...``).
        failures: 失败描述（``Index: i Message: ...``）。
    """

    value_type: ValueType
    total_records: int
    failures: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class ExportRequest(_Schema):
    """
    Export request.
    导出请求。
    """

    file_type: ExportFileType = ExportFileType.NODES
    cursor: CursorModel = Field(default_factory=CursorModel)


class ExportResponse(_Schema):
    """
    Export response.
    导出响应。

    Attributes:
        out: Comma-joined JSON records of this chunk.
        out: 本分块逗号连接的 JSON 记录。
        cursor: Cursor for the next request; ``(-1, -1)`` when done.
        cursor: 下一次请求的游标；完成时为 ``(-1, -1)``。
        is_full: Whether the chunk hit the size limit.
        is_full: 分块是否达到大小上限。
    """

    out: str
    cursor: CursorModel
    is_full: bool = False

    @property
    def done(self) -> bool:
        return self.cursor.to_cursor().is_done
