"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: schema.py
@DateTime: 2026-03-02
@Docs: Read-only tenant schema context and lookups.
只读的租户模式上下文与查找。

The project schema (models, fields, relations) is owned by the platform; this
module only mirrors the parts the bulk pipelines read and resolves names the
way the pipelines need them. Every failed lookup raises ``SchemaError``.
项目模式（模型、字段、关系）由平台持有；本模块只映射批量流水线需要读取的部分，
并按流水线的需要解析名称。所有查找失败均抛出 ``SchemaError``。
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from fastapi_bulk_io.exceptions import SchemaError

IMPLICIT_FIELDS: tuple[str, ...] = ("createdAt", "updatedAt")


class TypeIdentifier(StrEnum):
    """
    Scalar type of a field.
    字段的标量类型。
    """

    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    JSON = "Json"
    ENUM = "Enum"
    ID = "GraphQLID"


class RelationSide(StrEnum):
    """
    Side of a relation a field is declared on.
    字段所在的关系侧。
    """

    A = "A"
    B = "B"


@dataclass(frozen=True, slots=True)
class Field:
    """
    Model field.
    模型字段。

    Attributes:
        id: Stable field id.
        id: 稳定字段 ID。
        name: Field name.
        name: 字段名。
        is_list: Whether the field holds a list of scalars.
        is_list: 字段是否为标量列表。
        type_identifier: Scalar type.
        type_identifier: 标量类型。
        relation_side: Relation side tag for relation fields.
        relation_side: 关系字段的关系侧标记。
        relation_id: Owning relation id for relation fields.
        relation_id: 关系字段所属关系 ID。
    """

    id: str
    name: str
    is_list: bool = False
    type_identifier: TypeIdentifier = TypeIdentifier.STRING
    relation_side: RelationSide | None = None
    relation_id: str | None = None

    @property
    def is_relation(self) -> bool:
        return self.relation_id is not None


@dataclass(frozen=True, slots=True)
class Model:
    """
    Named record type.
    命名记录类型。
    """

    id: str
    name: str
    fields: tuple[Field, ...] = ()

    def field_by_name(self, name: str) -> Field:
        """
        Look up a field by name.
        按名称查找字段。

        Raises:
            SchemaError: When the field does not exist.
                字段不存在时抛出。
        """
        for f in self.fields:
            if f.name == name:
                return f
        raise SchemaError(
            message=f"Field '{name}' does not exist on model '{self.name}' / 模型 '{self.name}' 不存在字段 '{name}'",
            details={"model": self.name, "field": name},
        )

    def list_field_names(self) -> list[str]:
        """Return names of scalar list fields.
        返回标量列表字段名。
        """
        return [f.name for f in self.fields if f.is_list and not f.is_relation]

    def scalar_fields(self) -> list[Field]:
        return [f for f in self.fields if not f.is_relation]

    def field_ids(self) -> set[str]:
        return {f.id for f in self.fields}


@dataclass(frozen=True, slots=True)
class FieldMirror:
    """
    Denormalized copy of a related record's field stored on the relation row.
    存储在关系行上的关联记录字段冗余副本。
    """

    id: str
    field_id: str


@dataclass(frozen=True, slots=True)
class Relation:
    """
    Relation between an A-side model and a B-side model.
    A 侧模型与 B 侧模型之间的关系。
    """

    id: str
    name: str
    model_a_id: str
    model_b_id: str
    field_mirrors: tuple[FieldMirror, ...] = ()

    def model_a(self, project: "Project") -> Model:
        return project.model_by_id(self.model_a_id)

    def model_b(self, project: "Project") -> Model:
        return project.model_by_id(self.model_b_id)


@dataclass(frozen=True, slots=True)
class Project:
    """
    Tenant schema context.
    租户模式上下文。

    Attributes:
        id: Project id.
        id: 项目 ID。
        models: Models in export order.
        models: 按导出顺序排列的模型。
        relations: Relations between models.
        relations: 模型之间的关系。
    """

    id: str
    models: tuple[Model, ...] = ()
    relations: tuple[Relation, ...] = ()

    def model_by_name(self, name: str) -> Model:
        """
        Look up a model by name.
        按名称查找模型。

        Raises:
            SchemaError: When the model does not exist.
                模型不存在时抛出。
        """
        for m in self.models:
            if m.name == name:
                return m
        raise SchemaError(
            message=f"Model '{name}' does not exist in project '{self.id}' / 项目 '{self.id}' 不存在模型 '{name}'",
            details={"project": self.id, "model": name},
        )

    def model_by_id(self, model_id: str) -> Model:
        for m in self.models:
            if m.id == model_id:
                return m
        raise SchemaError(
            message=f"Model id '{model_id}' does not exist in project '{self.id}' / 项目 '{self.id}' 不存在模型 ID '{model_id}'",
            details={"project": self.id, "model_id": model_id},
        )

    def relation_by_id(self, relation_id: str) -> Relation:
        for r in self.relations:
            if r.id == relation_id:
                return r
        raise SchemaError(
            message=f"Relation '{relation_id}' does not exist in project '{self.id}' / 项目 '{self.id}' 不存在关系 '{relation_id}'",
            details={"project": self.id, "relation_id": relation_id},
        )

    def field_by_id(self, field_id: str) -> Field:
        model = self.model_for_field(field_id)
        return next(f for f in model.fields if f.id == field_id)

    def model_for_field(self, field_id: str) -> Model:
        for m in self.models:
            if field_id in m.field_ids():
                return m
        raise SchemaError(
            message=f"Field id '{field_id}' does not exist in project '{self.id}' / 项目 '{self.id}' 不存在字段 ID '{field_id}'",
            details={"project": self.id, "field_id": field_id},
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        """
        Build a project from a plain schema description.
        从普通模式描述构建项目。

        Expected shape / 期望结构::

            {
                "id": "blog",
                "models": [
                    {"id": "m1", "name": "Post", "fields": [
                        {"id": "f1", "name": "title", "typeIdentifier": "String"},
                        {"id": "f2", "name": "tags", "isList": true},
                        {"id": "f3", "name": "author", "relationId": "r1", "relationSide": "A"}
                    ]}
                ],
                "relations": [
                    {"id": "r1", "name": "PostAuthor", "modelAId": "m1", "modelBId": "m2",
                     "fieldMirrors": [{"id": "fm1", "fieldId": "f9"}]}
                ]
            }

        Args:
            data: Schema mapping.
                模式映射。

        Returns:
            Project: The project schema context.
            Project: 项目模式上下文。
        """
        models = tuple(
            Model(
                id=str(m["id"]),
                name=str(m["name"]),
                fields=tuple(
                    Field(
                        id=str(f["id"]),
                        name=str(f["name"]),
                        is_list=bool(f.get("isList", False)),
                        type_identifier=TypeIdentifier(f.get("typeIdentifier") or TypeIdentifier.STRING),
                        relation_side=RelationSide(f["relationSide"]) if f.get("relationSide") else None,
                        relation_id=str(f["relationId"]) if f.get("relationId") else None,
                    )
                    for f in m.get("fields", [])
                ),
            )
            for m in data.get("models", [])
        )
        relations = tuple(
            Relation(
                id=str(r["id"]),
                name=str(r.get("name") or r["id"]),
                model_a_id=str(r["modelAId"]),
                model_b_id=str(r["modelBId"]),
                field_mirrors=tuple(
                    FieldMirror(id=str(fm["id"]), field_id=str(fm["fieldId"])) for fm in r.get("fieldMirrors", [])
                ),
            )
            for r in data.get("relations", [])
        )
        return cls(id=str(data["id"]), models=models, relations=relations)


def relation_for_field(project: Project, model: Model, fld: Field) -> tuple[Relation, RelationSide]:
    """
    Resolve the relation and side a relation field belongs to.
    解析关系字段所属的关系及其关系侧。

    Args:
        project: Project schema context.
            项目模式上下文。
        model: Model owning the field.
            字段所属模型。
        fld: The relation field.
            关系字段。

    Returns:
        tuple[Relation, RelationSide]: The relation and the field's side.
        tuple[Relation, RelationSide]: 关系与字段所在侧。

    Raises:
        SchemaError: When the field is not a relation field or the relation is unknown.
            字段不是关系字段或关系不存在时抛出。
    """
    if fld.relation_id is None or fld.relation_side is None:
        raise SchemaError(
            message=(
                f"Field '{fld.name}' on model '{model.name}' is not a relation field"
                f" / 模型 '{model.name}' 的字段 '{fld.name}' 不是关系字段"
            ),
            details={"model": model.name, "field": fld.name},
        )
    return project.relation_by_id(fld.relation_id), fld.relation_side


def mirror_column_name(side: RelationSide, fld: Field) -> str:
    """Return the relation-table column holding a mirrored field.
    返回关系表中保存镜像字段的列名。
    """
    return f"{side.value}_{fld.name}"
