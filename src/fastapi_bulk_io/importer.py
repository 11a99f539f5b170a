"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: importer.py
@DateTime: 2026-03-02
@Docs: Bulk importer with decode/build/execute/report lifecycle.
批量导入器：解码 -> 构建 -> 执行 -> 报告 生命周期。
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import uuid6
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from fastapi_bulk_io.codecs import decode
from fastapi_bulk_io.exceptions import DecodingError, ImportExportError, SchemaError, StorageWriteError
from fastapi_bulk_io.formats import (
    RECORD_TYPES,
    ImportBundle,
    ImportListValue,
    ImportNodeValue,
    ImportRelation,
    InterchangeModel,
    ValueType,
)
from fastapi_bulk_io.intents import (
    CreateDataItem,
    CreateRelationRow,
    CreateRelayId,
    MirrorFieldValue,
    UpdateListValues,
    WriteIntent,
    WriteOutcome,
)
from fastapi_bulk_io.schema import Model, Project, Relation, RelationSide, mirror_column_name, relation_for_field
from fastapi_bulk_io.typing import ExecuteBatchFn

# A slot is one position in the batch: an intent to run, a schema failure
# captured while building, or nothing to write or report.
type Slot = WriteIntent | SchemaError | None


@dataclass(frozen=True, slots=True)
class DecodedBundle:
    """
    Decoded import bundle.
    解码后的导入包。

    Attributes:
        value_type: Bundle value type.
        value_type: 导入包值类型。
        records: Typed records in submission order.
        records: 按提交顺序排列的类型化记录。
    """

    value_type: ValueType
    records: list[Any]


@dataclass(frozen=True, slots=True)
class ImportReport:
    """
    Outcome of one import run.
    单次导入的结果。

    Attributes:
        value_type: Bundle value type.
        value_type: 导入包值类型。
        total_records: Number of decoded records.
        total_records: 解码得到的记录数。
        failures: Failure descriptions; empty means full success.
        failures: 失败描述列表；为空表示全部成功。
    """

    value_type: ValueType
    total_records: int
    failures: list[str]


def message_without_connection(text: str) -> str:
    """
    Strip the vendor/connection prefix from a storage error message.
    去除存储错误消息中的厂商/连接前缀。

    Everything up to and including the first ``)`` is dropped; text without a
    ``)`` is returned unchanged.
    丢弃第一个 ``)`` 及其之前的全部内容；不含 ``)`` 的文本原样返回。

    Examples:
        >>> message_without_connection("(conn) duplicate key")
        'duplicate key'
    """
    return text[text.find(")") + 1 :].lstrip()


def _validation_message(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {first.get('msg', str(exc))}" if loc else str(first.get("msg", str(exc)))


class Importer:
    """
    Bulk importer.
    批量导入器。

    Lifecycle hooks: decode -> build -> execute -> report.
    生命周期钩子：解码 -> 构建 -> 执行 -> 报告。

    The importer holds no project state; every call takes its project
    explicitly and is its own unit of work.
    导入器不持有项目状态；每次调用显式传入项目，且各自为独立的工作单元。
    """

    def __init__(self, *, execute_fn: ExecuteBatchFn) -> None:
        """
        Initialize importer.
        初始化导入器。

        Args:
            execute_fn: Batch execution capability.
            execute_fn: 批量执行能力。
        """
        self._execute_fn = execute_fn

    async def import_data(self, *, project: Project, payload: Mapping[str, Any]) -> list[str]:
        """
        Run the import lifecycle.
        执行导入生命周期。

        Args:
            project: Project schema context.
            project: 项目模式上下文。
            payload: JSON-decoded bundle ``{valueType, values}``.
            payload: JSON 解码后的导入包 ``{valueType, values}``。

        Returns:
            list[str]: Failure descriptions; empty means full success.
            list[str]: 失败描述列表；为空表示全部成功。

        Raises:
            DecodingError: When the bundle cannot be decoded.
            DecodingError: 导入包无法解码时抛出。
        """
        return (await self.run(project=project, payload=payload)).failures

    async def run(self, *, project: Project, payload: Mapping[str, Any]) -> ImportReport:
        """
        Run the import lifecycle and describe the bundle that was imported.
        执行导入生命周期，并返回所导入包的描述。
        """
        bundle = self.decode(payload)
        slots = self.build(project=project, bundle=bundle)
        outcomes = await self.execute(slots)
        failures = self.report(bundle=bundle, slots=slots, outcomes=outcomes)
        logger.info(
            "Imported {} {} records into project {} ({} failures)",
            len(bundle.records),
            bundle.value_type,
            project.id,
            len(failures),
        )
        return ImportReport(value_type=bundle.value_type, total_records=len(bundle.records), failures=failures)

    def decode(self, payload: Mapping[str, Any]) -> DecodedBundle:
        """
        Decode a payload into typed records.
        将载荷解码为类型化记录。
        """
        if not isinstance(payload, Mapping):
            raise DecodingError(message="Bundle must be a JSON object / 导入包必须为 JSON 对象")
        try:
            bundle = ImportBundle.model_validate(payload)
        except PydanticValidationError as exc:
            reason = _validation_message(exc)
            raise DecodingError(
                message=f"Invalid bundle: {reason} / 非法导入包: {reason}",
                details={"errors": exc.errors(include_url=False)},
            ) from exc

        record_type: type[InterchangeModel] = RECORD_TYPES[bundle.value_type]
        records: list[Any] = []
        for position, node in enumerate(bundle.values):
            value = decode(node)
            try:
                records.append(record_type.model_validate(value))
            except PydanticValidationError as exc:
                reason = _validation_message(exc)
                raise DecodingError(
                    message=(
                        f"Invalid {bundle.value_type} record at position {position}: {reason}"
                        f" / 第 {position} 条 {bundle.value_type} 记录非法: {reason}"
                    ),
                    details={"position": position, "errors": exc.errors(include_url=False)},
                ) from exc
        return DecodedBundle(value_type=bundle.value_type, records=records)

    def build(self, *, project: Project, bundle: DecodedBundle) -> list[Slot]:
        """
        Build batch slots for a decoded bundle.
        为解码后的导入包构建批次槽位。
        """
        match bundle.value_type:
            case ValueType.NODES:
                return build_node_slots(project, bundle.records)
            case ValueType.RELATIONS:
                return [_capture(build_relation_intent, project, r) for r in bundle.records]
            case ValueType.LIST_VALUES:
                return [_capture(build_list_intent, project, r) for r in bundle.records]

    async def execute(self, slots: Sequence[Slot]) -> list[WriteOutcome]:
        """
        Execute all intents as one batch and map outcomes back onto slots.
        将所有意图作为一个批次执行，并把结果映射回槽位。

        Schema failures become failed outcomes; empty slots succeed.
        模式错误转为失败结果；空槽位视为成功。
        """
        intents = [s for s in slots if s is not None and not isinstance(s, ImportExportError)]
        results = await self._execute_fn(intents) if intents else []
        if len(results) != len(intents):
            raise ImportExportError(
                message=(
                    f"Executor returned {len(results)} outcomes for {len(intents)} intents"
                    f" / 执行器为 {len(intents)} 个意图返回了 {len(results)} 个结果"
                ),
                status_code=500,
                error_code="executor_contract",
            )
        pending = iter(results)
        outcomes: list[WriteOutcome] = []
        for slot in slots:
            if slot is None:
                outcomes.append(WriteOutcome())
            elif isinstance(slot, ImportExportError):
                outcomes.append(WriteOutcome(error=slot))
            else:
                outcomes.append(next(pending))
        return outcomes

    def report(self, *, bundle: DecodedBundle, slots: Sequence[Slot], outcomes: Sequence[WriteOutcome]) -> list[str]:
        """
        Render failure descriptions using the bundle index scheme.
        按导入包索引规则生成失败描述。

        Rows ``0..N-1`` report their own index; relay rows ``N..2N-1`` report
        ``index - N`` prefixed with ``Relay Id Failure``.
        第 ``0..N-1`` 行报告自身索引；relay 行 ``N..2N-1`` 报告 ``index - N``，
        并带有 ``Relay Id Failure`` 前缀。
        """
        count = len(bundle.records)
        failures: list[str] = []
        for idx, outcome in enumerate(outcomes):
            if outcome.error is None:
                continue
            message = _failure_text(outcome.error)
            if idx < count:
                failures.append(f"Index: {idx} Message: {message}")
            else:
                failures.append(f"Index: {idx - count} Message: Relay Id Failure {message}")
        storage_failures = sum(1 for o in outcomes if isinstance(o.error, StorageWriteError))
        if storage_failures:
            logger.warning(
                "Import batch had {} storage write failures out of {} writes", storage_failures, len(outcomes)
            )
        return failures


def _failure_text(error: ImportExportError) -> str:
    if isinstance(error, SchemaError):
        return error.message
    return message_without_connection(error.message)


def _capture(builder: Any, project: Project, record: Any) -> Slot:
    try:
        return builder(project, record)
    except SchemaError as exc:
        return exc


def build_node_slots(project: Project, nodes: Sequence[ImportNodeValue]) -> list[Slot]:
    """
    Build node-row slots followed by relay-row slots.
    先构建节点行槽位，再构建 relay 行槽位。

    A node whose model is unknown yields a schema failure and no relay write.
    模型不存在的节点产生模式错误，且不写 relay 行。
    """
    rows: list[Slot] = []
    relays: list[Slot] = []
    for node in nodes:
        try:
            model = project.model_by_name(node.identifier.type_name)
        except SchemaError as exc:
            rows.append(exc)
            relays.append(None)
            continue
        rows.append(build_node_intent(model, node))
        relays.append(CreateRelayId(id=node.identifier.id, stable_model_identifier=model.id))
    return rows + relays


def build_node_intent(model: Model, node: ImportNodeValue) -> CreateDataItem:
    """
    Build the row insert for one node; list fields default to an empty list.
    为单个节点构建插入行；列表字段默认为空列表。
    """
    values = dict(node.values)
    for name in model.list_field_names():
        values.setdefault(name, [])
    values["id"] = node.identifier.id
    return CreateDataItem(model_name=model.name, values=values)


def _mirror_values(
    project: Project, relation: Relation, side: RelationSide, model: Model, id: str
) -> list[MirrorFieldValue]:
    model_field_ids = model.field_ids()
    mirrors: list[MirrorFieldValue] = []
    for mirror in relation.field_mirrors:
        if mirror.field_id not in model_field_ids:
            continue
        fld = project.field_by_id(mirror.field_id)
        mirrors.append(
            MirrorFieldValue(
                relation_column_name=mirror_column_name(side, fld),
                model_column_name=fld.name,
                model_name=model.name,
                id=id,
            )
        )
    return mirrors


def build_relation_intent(project: Project, record: ImportRelation) -> CreateRelationRow:
    """
    Build the relation-row insert for one relation record.
    为单条关系记录构建关系行插入。

    The A/B assignment follows the declared side of the left field, not the
    left/right order of the input.
    A/B 的分配取决于左侧字段声明的关系侧，而不是输入中的左右顺序。
    """
    from_model = project.model_by_name(record.left.identifier.type_name)
    from_field = from_model.field_by_name(record.left.field_name)
    relation, side = relation_for_field(project, from_model, from_field)

    if side == RelationSide.A:
        a_value, b_value = record.left.identifier.id, record.right.identifier.id
    else:
        a_value, b_value = record.right.identifier.id, record.left.identifier.id

    model_a = relation.model_a(project)
    model_b = relation.model_b(project)
    mirrors = _mirror_values(project, relation, RelationSide.A, model_a, a_value) + _mirror_values(
        project, relation, RelationSide.B, model_b, b_value
    )
    return CreateRelationRow(
        relation_id=relation.id,
        id=str(uuid6.uuid7()),
        a=a_value,
        b=b_value,
        mirrors=tuple(mirrors),
    )


def build_list_intent(project: Project, record: ImportListValue) -> UpdateListValues:
    """
    Build the list replacement for one list record.
    为单条列表记录构建列表替换。
    """
    model = project.model_by_name(record.identifier.type_name)
    return UpdateListValues(
        model_name=model.name,
        id=record.identifier.id,
        values={name: list(values) for name, values in record.values.items()},
    )
