"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: adapters.py
@DateTime: 2026-03-03
@Docs: SQLAlchemy storage adapter for bulk import/export.
批量导入导出的 SQLAlchemy 存储适配器。

Maps a project schema onto SQLAlchemy Core tables and provides the two storage
capabilities the pipelines need:

将项目模式映射为 SQLAlchemy Core 表，并提供流水线需要的两种存储能力：

        - ``execute_batch``: run write intents, one SAVEPOINT per intent, one commit per batch.
            ``execute_batch``：执行写入意图，每个意图一个 SAVEPOINT，每个批次提交一次。
        - ``fetch_rows``: read a page of rows ordered by id.
            ``fetch_rows``：按 ID 排序读取一页数据行。
"""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from loguru import logger

from fastapi_bulk_io.exceptions import ImportExportError, StorageFetchError, StorageWriteError
from fastapi_bulk_io.intents import (
    RELAY_TABLE,
    CreateDataItem,
    CreateRelationRow,
    CreateRelayId,
    DataItem,
    UpdateListValues,
    WriteIntent,
    WriteOutcome,
)
from fastapi_bulk_io.schema import (
    IMPLICIT_FIELDS,
    Field,
    Model,
    Project,
    Relation,
    RelationSide,
    TypeIdentifier,
    mirror_column_name,
)


def _require_sqlalchemy() -> Any:
    try:
        import sqlalchemy as sa

        return sa
    except Exception as exc:  # pragma: no cover
        raise ImportExportError(
            message="Missing optional dependency: sqlalchemy / 缺少可选依赖: sqlalchemy",
            details={"error": str(exc)},
            error_code="missing_dependency",
        ) from exc


def _storage_message(sa: Any, exc: Exception) -> str:
    """Return the driver message without the SQL statement and parameters.
    返回不含 SQL 语句与参数的驱动错误消息。

    ``StatementError.args[0]`` is ``"(module.ErrorClass) driver text"``; ``str()``
    would append ``[SQL: ...]``, ``[parameters: ...]`` and a help link.
    ``StatementError.args[0]`` 形如 ``"(module.ErrorClass) driver text"``；
    ``str()`` 还会附加 ``[SQL: ...]``、``[parameters: ...]`` 与帮助链接。
    """
    if isinstance(exc, sa.exc.StatementError) and exc.args:
        return str(exc.args[0])
    return str(exc)


def _column_type(sa: Any, fld: Field) -> Any:
    if fld.is_list:
        return sa.JSON()
    match fld.type_identifier:
        case TypeIdentifier.INT:
            return sa.Integer()
        case TypeIdentifier.FLOAT:
            return sa.Float()
        case TypeIdentifier.BOOLEAN:
            return sa.Boolean()
        case TypeIdentifier.DATETIME:
            return sa.DateTime(timezone=True)
        case TypeIdentifier.JSON:
            return sa.JSON()
        case _:
            return sa.Text()


def _mirrored_fields(project: Project, relation: Relation) -> list[tuple[RelationSide, Field]]:
    mirrored: list[tuple[RelationSide, Field]] = []
    for side, model in ((RelationSide.A, relation.model_a(project)), (RelationSide.B, relation.model_b(project))):
        model_field_ids = model.field_ids()
        for mirror in relation.field_mirrors:
            if mirror.field_id in model_field_ids:
                mirrored.append((side, project.field_by_id(mirror.field_id)))
    return mirrored


def build_metadata(project: Project, metadata: Any | None = None) -> Any:
    """
    Build SQLAlchemy tables for a project.
    为项目构建 SQLAlchemy 表。

    Layout / 表布局:
        - one table per model: text ``id`` primary key, one column per scalar
          field (list fields as JSON), ``createdAt``/``updatedAt``.
          每个模型一张表：文本 ``id`` 主键、每个标量字段一列（列表字段为 JSON）、
          ``createdAt``/``updatedAt``。
        - ``_RelayId(id, stableModelIdentifier)``.
        - one table per relation, named by relation id: ``id``, ``A``, ``B``
          and one column per mirrored field.
          每个关系一张表（以关系 ID 命名）：``id``、``A``、``B`` 以及每个镜像字段一列。

    Args:
        project: Project schema context.
            项目模式上下文。
        metadata: Optional MetaData to add tables to.
            可选的 MetaData，表会添加到其中。

    Returns:
        sqlalchemy.MetaData: Metadata holding all tables.
            包含全部表的元数据。
    """
    sa = _require_sqlalchemy()
    md = metadata if metadata is not None else sa.MetaData()
    for model in project.models:
        columns = [sa.Column("id", sa.String(64), primary_key=True)]
        for fld in model.scalar_fields():
            if fld.name == "id" or fld.name in IMPLICIT_FIELDS:
                continue
            columns.append(sa.Column(fld.name, _column_type(sa, fld), nullable=True))
        for name in IMPLICIT_FIELDS:
            columns.append(sa.Column(name, sa.DateTime(timezone=True), nullable=True))
        sa.Table(model.name, md, *columns)

    sa.Table(
        RELAY_TABLE,
        md,
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("stableModelIdentifier", sa.String(64), nullable=False),
    )

    for relation in project.relations:
        columns = [
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("A", sa.String(64), nullable=False),
            sa.Column("B", sa.String(64), nullable=False),
        ]
        for side, fld in _mirrored_fields(project, relation):
            columns.append(sa.Column(mirror_column_name(side, fld), _column_type(sa, fld), nullable=True))
        sa.Table(relation.id, md, *columns, sa.UniqueConstraint("A", "B"))
    return md


def _parse_datetime(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    return datetime.fromisoformat(text)


def coerce_value(fld: Field | None, value: Any) -> Any:
    """
    Convert an interchange value to what the column type accepts.
    将交换格式值转换为列类型可接受的值。

    ``fld`` is None for ``createdAt``/``updatedAt``.
    ``createdAt``/``updatedAt`` 对应的 ``fld`` 为 None。

    Raises:
        ValueError: When a DateTime string is not ISO 8601.
            DateTime 字符串不是 ISO 8601 格式时抛出。
    """
    if value is None:
        return None
    if fld is None or (fld.type_identifier == TypeIdentifier.DATETIME and not fld.is_list):
        return _parse_datetime(value)
    if isinstance(value, Decimal):
        return int(value) if fld.type_identifier == TypeIdentifier.INT else float(value)
    return value


class SqlAlchemyStatementBuilder:
    """
    Translate write intents into SQLAlchemy Core statements.
    将写入意图转换为 SQLAlchemy Core 语句。
    """

    def __init__(self, project: Project, metadata: Any | None = None) -> None:
        self.project = project
        self.metadata = metadata if metadata is not None else build_metadata(project)

    def table(self, name: str) -> Any:
        try:
            return self.metadata.tables[name]
        except KeyError as exc:
            raise StorageWriteError(message=f"Unknown table {name} / 未知数据表 {name}") from exc

    def _row_values(self, model: Model, values: dict[str, Any]) -> dict[str, Any]:
        row: dict[str, Any] = {}
        for name, value in values.items():
            if name == "id":
                row[name] = value
            elif name in IMPLICIT_FIELDS:
                row[name] = coerce_value(None, value)
            else:
                row[name] = coerce_value(model.field_by_name(name), value)
        return row

    def build(self, intent: WriteIntent) -> list[Any]:
        """
        Build the statements for one intent.
        为单个意图构建语句。

        Args:
            intent: Write intent.
                写入意图。

        Returns:
            list: Statements to run in order.
                按顺序执行的语句。

        Raises:
            SchemaError: When a value names a field the model does not declare.
                值中包含模型未声明的字段时抛出。
            ValueError: When a value cannot be converted to its column type.
                值无法转换为列类型时抛出。
        """
        sa = _require_sqlalchemy()
        match intent:
            case CreateDataItem(model_name=model_name, values=values):
                model = self.project.model_by_name(model_name)
                return [sa.insert(self.table(model_name)).values(self._row_values(model, values))]
            case CreateRelayId(id=record_id, stable_model_identifier=model_id):
                return [sa.insert(self.table(RELAY_TABLE)).values(id=record_id, stableModelIdentifier=model_id)]
            case CreateRelationRow(relation_id=relation_id, id=row_id, a=a, b=b, mirrors=mirrors):
                table = self.table(relation_id)
                statements: list[Any] = [sa.insert(table).values(id=row_id, A=a, B=b)]
                for mirror in mirrors:
                    source = self.table(mirror.model_name)
                    copied = (
                        sa.select(source.c[mirror.model_column_name])
                        .where(source.c.id == mirror.id)
                        .scalar_subquery()
                    )
                    statements.append(
                        sa.update(table).where(table.c.id == row_id).values({mirror.relation_column_name: copied})
                    )
                return statements
            case UpdateListValues(model_name=model_name, id=record_id, values=values):
                table = self.table(model_name)
                return [sa.update(table).where(table.c.id == record_id).values(dict(values))]
        raise StorageWriteError(message=f"Unsupported write intent: {type(intent).__name__} / 不支持的写入意图")


class SqlAlchemyStorage:
    """
    SQLAlchemy-backed storage capabilities for one project.
    单个项目的 SQLAlchemy 存储能力。

    ``execute_batch`` and ``fetch_rows`` are passed to ``ImportExportService``
    as ``execute_fn`` and ``fetch_fn``.
    ``execute_batch`` 与 ``fetch_rows`` 作为 ``execute_fn`` 与 ``fetch_fn``
    传给 ``ImportExportService``。

    Examples:
        >>> # storage = SqlAlchemyStorage(session, project)
        >>> # svc = ImportExportService(execute_fn=storage.execute_batch, fetch_fn=storage.fetch_rows)
    """

    def __init__(self, session: Any, project: Project, *, metadata: Any | None = None) -> None:
        """
        Args:
            session: SQLAlchemy AsyncSession.
                SQLAlchemy 异步会话。
            project: Project schema context.
                项目模式上下文。
            metadata: Optional prebuilt metadata (see ``build_metadata``).
                可选的预构建元数据（见 ``build_metadata``）。
        """
        self.session = session
        self.project = project
        self.builder = SqlAlchemyStatementBuilder(project, metadata)

    @property
    def metadata(self) -> Any:
        return self.builder.metadata

    async def create_all(self) -> None:
        """Create all project tables on the session's bind and commit.
        在会话绑定的连接上创建全部项目表并提交。
        """
        conn = await self.session.connection()
        await conn.run_sync(self.metadata.create_all)
        await self.session.commit()

    async def execute_batch(self, intents: Sequence[WriteIntent]) -> list[WriteOutcome]:
        """
        Run a batch of intents and report one outcome per intent.
        执行一批意图，并为每个意图返回一个结果。

        Each intent runs in its own SAVEPOINT so a failed write leaves the rest
        of the batch intact; the batch is committed once at the end.
        每个意图在独立 SAVEPOINT 中执行，失败的写入不影响批次其余部分；
        批次在最后统一提交一次。
        """
        sa = _require_sqlalchemy()
        outcomes: list[WriteOutcome] = []
        for intent in intents:
            try:
                statements = self.builder.build(intent)
                async with self.session.begin_nested():
                    for stmt in statements:
                        await self.session.execute(stmt)
            except ImportExportError as exc:
                outcomes.append(WriteOutcome(error=exc))
            except Exception as exc:
                # drivers raise some errors (e.g. OverflowError) unwrapped
                outcomes.append(
                    WriteOutcome(
                        error=StorageWriteError(
                            message=_storage_message(sa, exc), details={"intent": type(intent).__name__}
                        )
                    )
                )
            else:
                outcomes.append(WriteOutcome())
        await self.session.commit()
        failed = sum(1 for o in outcomes if not o.succeeded)
        if failed:
            logger.debug("SQLAlchemy batch committed with {} of {} writes failed", failed, len(outcomes))
        return outcomes

    async def fetch_rows(self, *, model: Model, skip: int, limit: int) -> list[DataItem]:
        """
        Read rows of a model ordered by id.
        按 ID 排序读取模型的数据行。

        Raises:
            StorageFetchError: When the read fails.
                读取失败时抛出。
        """
        sa = _require_sqlalchemy()
        table = self.metadata.tables.get(model.name)
        if table is None:
            raise StorageFetchError(
                message=f"No table for model {model.name} / 模型 {model.name} 没有对应数据表",
                details={"model": model.name},
            )
        stmt = sa.select(table).order_by(table.c.id).offset(skip).limit(limit)
        try:
            result = await self.session.execute(stmt)
        except sa.exc.SQLAlchemyError as exc:
            raise StorageFetchError(message=_storage_message(sa, exc), details={"model": model.name}) from exc
        return [
            DataItem(id=str(row["id"]), values={k: v for k, v in row.items() if k != "id"})
            for row in result.mappings()
        ]
