"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: exceptions.py
@DateTime: 2026-03-02
@Docs: Bulk import/export error hierarchy.
批量导入导出异常体系。
"""

from typing import Any


class ImportExportError(Exception):
    """
    Import/Export Errors.
    导入导出异常。

    Errors that occur during bulk import/export.
    批量导入导出过程中发生的异常。

    Attributes:
        message: Error message.
        message: 错误消息。
        status_code: HTTP status code.
        status_code: HTTP 状态码。
        details: Error details.
        details: 错误详情。
        error_code: Stable error code.
        error_code: 稳定错误码。
    """

    def __init__(
        self,
        *,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
        error_code: str = "import_export_error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details
        self.error_code = error_code


class SchemaError(ImportExportError):
    """
    Schema error: a model, field or relation name does not exist in the project.
    模式错误：项目中不存在引用的模型、字段或关系。

    Raised per record during import; it never aborts the whole batch.
    导入时按记录抛出，不会中断整个批次。
    """

    def __init__(self, *, message: str, details: Any | None = None) -> None:
        super().__init__(message=message, status_code=400, details=details, error_code="schema_error")


class DecodingError(ImportExportError):
    """
    Decoding error: a bundle or value node has an unsupported shape.
    解码错误：导入包或值节点的结构不受支持。
    """

    def __init__(self, *, message: str, details: Any | None = None) -> None:
        super().__init__(message=message, status_code=400, details=details, error_code="decoding_error")


class StorageWriteError(ImportExportError):
    """
    Storage write error for a single write intent.
    单个写入意图的存储写入错误。
    """

    def __init__(self, *, message: str, details: Any | None = None) -> None:
        super().__init__(message=message, status_code=500, details=details, error_code="storage_write_error")


class StorageFetchError(ImportExportError):
    """
    Storage fetch error while reading rows for export.
    导出读取数据行时的存储错误。
    """

    def __init__(self, *, message: str, details: Any | None = None) -> None:
        super().__init__(message=message, status_code=500, details=details, error_code="storage_fetch_error")
