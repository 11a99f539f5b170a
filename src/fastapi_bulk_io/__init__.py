"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-03-02
@Docs: Package exports for fastapi_bulk_io.
fastapi_bulk_io 包导出定义。
"""

from fastapi_bulk_io.codecs import Codec, InterchangeCodec, JsonNode, decode, dumps, encode, loads
from fastapi_bulk_io.config import BulkIOConfig, resolve_config
from fastapi_bulk_io.exceptions import (
    DecodingError,
    ImportExportError,
    SchemaError,
    StorageFetchError,
    StorageWriteError,
)
from fastapi_bulk_io.exporter import END_CURSOR, START_CURSOR, ExportChunk, ExportCursor, Exporter
from fastapi_bulk_io.formats import (
    ExportFileType,
    ImportBundle,
    ImportIdentifier,
    ImportListValue,
    ImportNodeValue,
    ImportRelation,
    ImportRelationSide,
    ValueType,
)
from fastapi_bulk_io.importer import Importer, ImportReport, message_without_connection
from fastapi_bulk_io.intents import (
    CreateDataItem,
    CreateRelationRow,
    CreateRelayId,
    DataItem,
    MirrorFieldValue,
    UpdateListValues,
    WriteIntent,
    WriteOutcome,
)
from fastapi_bulk_io.schema import Field, FieldMirror, Model, Project, Relation, RelationSide, TypeIdentifier
from fastapi_bulk_io.schemas import CursorModel, ExportRequest, ExportResponse, ImportResponse
from fastapi_bulk_io.service import ImportExportService
from fastapi_bulk_io.typing import ExecuteBatchFn, FetchRowsFn, RecordSerializer

__all__ = [
    "Codec",
    "InterchangeCodec",
    "JsonNode",
    "encode",
    "decode",
    "dumps",
    "loads",
    "BulkIOConfig",
    "resolve_config",
    "ImportExportError",
    "SchemaError",
    "DecodingError",
    "StorageWriteError",
    "StorageFetchError",
    "Exporter",
    "ExportChunk",
    "ExportCursor",
    "START_CURSOR",
    "END_CURSOR",
    "ValueType",
    "ExportFileType",
    "ImportBundle",
    "ImportIdentifier",
    "ImportNodeValue",
    "ImportRelation",
    "ImportRelationSide",
    "ImportListValue",
    "Importer",
    "ImportReport",
    "message_without_connection",
    "DataItem",
    "CreateDataItem",
    "CreateRelayId",
    "CreateRelationRow",
    "MirrorFieldValue",
    "UpdateListValues",
    "WriteIntent",
    "WriteOutcome",
    "Project",
    "Model",
    "Field",
    "FieldMirror",
    "Relation",
    "RelationSide",
    "TypeIdentifier",
    "CursorModel",
    "ImportResponse",
    "ExportRequest",
    "ExportResponse",
    "ImportExportService",
    "ExecuteBatchFn",
    "FetchRowsFn",
    "RecordSerializer",
]
