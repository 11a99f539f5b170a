"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: conftest.py
@DateTime: 2026-03-03
@Docs: Shared test fixtures for the fastapi-bulk-io test suite.
测试套件的公共 fixtures。
"""

import io
from collections.abc import Sequence
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from fastapi_bulk_io.intents import DataItem, WriteIntent, WriteOutcome
from fastapi_bulk_io.schema import Model, Project

BLOG_SCHEMA: dict[str, Any] = {
    "id": "blog",
    "models": [
        {
            "id": "m-post",
            "name": "Post",
            "fields": [
                {"id": "f-post-title", "name": "title", "typeIdentifier": "String"},
                {"id": "f-post-views", "name": "views", "typeIdentifier": "Int"},
                {"id": "f-post-published", "name": "publishedAt", "typeIdentifier": "DateTime"},
                {"id": "f-post-tags", "name": "tags", "typeIdentifier": "String", "isList": True},
                {"id": "f-post-author", "name": "author", "relationId": "r-post-author", "relationSide": "A"},
            ],
        },
        {
            "id": "m-user",
            "name": "User",
            "fields": [
                {"id": "f-user-name", "name": "name", "typeIdentifier": "String"},
                {"id": "f-user-nicknames", "name": "nicknames", "typeIdentifier": "String", "isList": True},
                {"id": "f-user-posts", "name": "posts", "relationId": "r-post-author", "relationSide": "B"},
            ],
        },
    ],
    "relations": [
        {
            "id": "r-post-author",
            "name": "PostAuthor",
            "modelAId": "m-post",
            "modelBId": "m-user",
            "fieldMirrors": [{"id": "fm-user-name", "fieldId": "f-user-name"}],
        }
    ],
}


@pytest.fixture
def project() -> Project:
    """Blog project with Post/User and one relation.
    包含 Post/User 与一个关系的博客项目。
    """
    return Project.from_dict(BLOG_SCHEMA)


@pytest.fixture
def post_only_project() -> Project:
    """Project with a single Post model and no list fields.
    仅含一个无列表字段 Post 模型的项目。
    """
    return Project.from_dict(
        {
            "id": "posts",
            "models": [{"id": "m-post", "name": "Post", "fields": [{"id": "f-title", "name": "title"}]}],
        }
    )


def make_upload_file(filename: str, content: bytes, content_type: str = "application/json") -> UploadFile:
    """Create an UploadFile from bytes.
    从字节内容创建 UploadFile。

    Args:
        filename: File name / 文件名。
        content: File content bytes / 文件内容字节。
        content_type: MIME type / MIME 类型。

    Returns:
        UploadFile: Upload file / 上传文件。
    """
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        size=len(content),
        headers=Headers({"content-type": content_type}),
    )


def make_executor(failures: dict[int, Exception] | None = None) -> AsyncMock:
    """Executor mock succeeding every intent except the given positions.
    除指定位置外全部成功的执行器 mock。
    """
    failures = failures or {}

    async def _execute(intents: Sequence[WriteIntent]) -> list[WriteOutcome]:
        return [WriteOutcome(error=failures.get(i)) for i in range(len(intents))]  # type: ignore[arg-type]

    return AsyncMock(side_effect=_execute)


def make_fetcher(rows: dict[str, list[DataItem]]) -> AsyncMock:
    """Fetcher mock serving in-memory rows per model name.
    按模型名提供内存数据行的读取器 mock。
    """

    async def _fetch(*, model: Model, skip: int, limit: int) -> list[DataItem]:
        return rows.get(model.name, [])[skip : skip + limit]

    return AsyncMock(side_effect=_fetch)


@pytest.fixture
def mock_redis() -> Any:
    """A mock object implementing the RedisLike protocol.
    实现 RedisLike 协议的 mock 对象。
    """
    redis = MagicMock()
    redis.set = MagicMock(return_value=True)
    redis.get = MagicMock(return_value=None)
    redis.delete = MagicMock(return_value=1)
    return redis


@pytest.fixture
async def sqlite_session() -> Any:
    """AsyncSession on an in-memory SQLite database with working SAVEPOINTs.
    基于内存 SQLite 且 SAVEPOINT 可用的 AsyncSession。
    """
    pytest.importorskip("sqlalchemy")
    pytest.importorskip("aiosqlite")
    from sqlalchemy import event
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()
