"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_exporter.py
@DateTime: 2026-03-03
@Docs: Tests for exporter.py module.
exporter.py 模块测试。
"""

import json
from typing import Any

import pytest
from loguru import logger

from fastapi_bulk_io.config import BulkIOConfig
from fastapi_bulk_io.exceptions import ImportExportError, StorageFetchError
from fastapi_bulk_io.exporter import END_CURSOR, START_CURSOR, ExportCursor, Exporter
from fastapi_bulk_io.intents import DataItem
from fastapi_bulk_io.schema import Model, Project
from tests.conftest import make_fetcher


def _records(out: str) -> list[dict[str, Any]]:
    return json.loads(f"[{out}]") if out else []


def _ids(out: str) -> list[str]:
    return [r["identifier"]["id"] for r in _records(out)]


def _posts(count: int, title_len: int = 1, start: int = 0) -> list[DataItem]:
    return [DataItem(id=f"p{i:03d}", values={"title": "x" * title_len}) for i in range(start, start + count)]


class TestExportNodes:
    """Tests for Exporter.export_nodes.
    Exporter.export_nodes 测试。
    """

    @pytest.mark.asyncio
    async def test_small_model_single_call(self, post_only_project: Project) -> None:
        """Three small rows fit one chunk / 三条小记录放入一个分块。"""
        exporter = Exporter(fetch_fn=make_fetcher({"Post": _posts(3)}))
        chunk = await exporter.export_nodes(project=post_only_project)
        assert chunk.cursor == END_CURSOR
        assert chunk.is_full is False
        records = _records(chunk.out)
        assert [r["index"] for r in records] == [0, 1, 2]
        assert [r["identifier"] for r in records] == [{"typeName": "Post", "id": f"p00{i}"} for i in range(3)]
        assert len(chunk.out) <= 1000

    @pytest.mark.asyncio
    async def test_shrinks_batch_until_fit(self, post_only_project: Project) -> None:
        """Overflowing slice retried at 100, 10, 1 / 溢出切片依次以 100、10、1 重试。"""
        messages: list[str] = []
        handler_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG", format="{message}")
        try:
            exporter = Exporter(fetch_fn=make_fetcher({"Post": _posts(5, title_len=300)}))
            chunk = await exporter.export_nodes(project=post_only_project)
        finally:
            logger.remove(handler_id)
        assert _ids(chunk.out) == ["p000", "p001"]
        assert chunk.cursor == ExportCursor(0, 2)
        assert chunk.is_full is True
        assert len(chunk.out) <= 1000
        sizes = [m.rsplit(" ", 1)[-1].strip() for m in messages if "retrying with batch size" in m]
        assert sizes[:3] == ["100", "10", "1"]

    @pytest.mark.asyncio
    async def test_resume_from_cursor(self, post_only_project: Project) -> None:
        """Next call resumes at the cursor with index reset / 下一次调用从游标恢复且索引重置。"""
        exporter = Exporter(fetch_fn=make_fetcher({"Post": _posts(5, title_len=300)}))
        second = await exporter.export_nodes(project=post_only_project, cursor=ExportCursor(0, 2))
        assert _ids(second.out) == ["p002", "p003"]
        assert [r["index"] for r in _records(second.out)] == [0, 1]
        assert second.cursor == ExportCursor(0, 4)
        third = await exporter.export_nodes(project=post_only_project, cursor=second.cursor)
        assert _ids(third.out) == ["p004"]
        assert third.cursor == END_CURSOR

    @pytest.mark.asyncio
    async def test_cursor_sequence_covers_all_rows(self, project: Project) -> None:
        """Cursors advance until done and cover every row once / 游标推进直到完成，且每行恰好覆盖一次。"""
        posts = [DataItem(id=f"p{i:03d}", values={"title": "t" * (i * 37 % 250)}) for i in range(40)]
        users = [DataItem(id=f"u{i:03d}", values={"name": "n" * (i * 53 % 400)}) for i in range(25)]
        exporter = Exporter(
            fetch_fn=make_fetcher({"Post": posts, "User": users}),
            config=BulkIOConfig(export_char_limit=1000, export_page_size=7),
        )
        cursor = START_CURSOR
        seen: list[str] = []
        previous = (-1, -1)
        for _ in range(200):
            chunk = await exporter.export_nodes(project=project, cursor=cursor)
            seen.extend(_ids(chunk.out))
            if chunk.cursor.is_done:
                break
            assert (chunk.cursor.model_index, chunk.cursor.row_offset) > previous
            assert len(chunk.out) <= 1000
            previous = (chunk.cursor.model_index, chunk.cursor.row_offset)
            cursor = chunk.cursor
        else:
            pytest.fail("export did not terminate / 导出未终止")
        assert seen == [p.id for p in posts] + [u.id for u in users]

    @pytest.mark.asyncio
    async def test_multiple_models_in_one_chunk(self, project: Project) -> None:
        """Small models share one chunk with running index / 小模型共用一个分块且索引连续。"""
        rows = {"Post": _posts(2), "User": [DataItem(id="u1", values={"name": "n"})]}
        chunk = await Exporter(fetch_fn=make_fetcher(rows)).export_nodes(project=project)
        records = _records(chunk.out)
        assert [(r["index"], r["identifier"]["typeName"]) for r in records] == [(0, "Post"), (1, "Post"), (2, "User")]
        assert chunk.cursor == END_CURSOR

    @pytest.mark.asyncio
    async def test_full_chunk_moves_to_next_model(self, project: Project) -> None:
        """Cursor may point into a later model / 游标可以指向后续模型。"""
        rows = {"Post": _posts(1), "User": [DataItem(id=f"u{i}", values={"name": "n" * 400}) for i in range(3)]}
        chunk = await Exporter(fetch_fn=make_fetcher(rows)).export_nodes(project=project)
        assert _ids(chunk.out) == ["p000", "u0"]
        assert chunk.cursor == ExportCursor(1, 1)

    @pytest.mark.asyncio
    async def test_single_record_over_limit(self, post_only_project: Project) -> None:
        """A lone oversized record is emitted / 单条超大记录仍会输出。"""
        rows = {"Post": _posts(1, title_len=2000) + _posts(1, start=1)}
        exporter = Exporter(fetch_fn=make_fetcher(rows))
        chunk = await exporter.export_nodes(project=post_only_project)
        assert _ids(chunk.out) == ["p000"]
        assert len(chunk.out) > 1000
        assert chunk.cursor == ExportCursor(0, 1)
        rest = await exporter.export_nodes(project=post_only_project, cursor=chunk.cursor)
        assert _ids(rest.out) == ["p001"]
        assert rest.cursor == END_CURSOR

    @pytest.mark.asyncio
    async def test_oversized_record_waits_for_next_chunk(self, post_only_project: Project) -> None:
        """Oversized record after others starts the next chunk / 其他记录之后的超大记录进入下一个分块。"""
        rows = {"Post": _posts(1) + _posts(1, title_len=2000, start=1)}
        exporter = Exporter(fetch_fn=make_fetcher(rows))
        chunk = await exporter.export_nodes(project=post_only_project)
        assert _ids(chunk.out) == ["p000"]
        assert chunk.cursor == ExportCursor(0, 1)
        big = await exporter.export_nodes(project=post_only_project, cursor=chunk.cursor)
        assert _ids(big.out) == ["p001"]

    @pytest.mark.asyncio
    async def test_pages_through_storage(self, post_only_project: Project) -> None:
        """Fetches page_size + 1 rows per page / 每页读取 page_size + 1 行。"""
        fetcher = make_fetcher({"Post": _posts(5)})
        exporter = Exporter(fetch_fn=fetcher, config=BulkIOConfig(export_page_size=2))
        chunk = await exporter.export_nodes(project=post_only_project)
        assert _ids(chunk.out) == [f"p00{i}" for i in range(5)]
        assert [r["index"] for r in _records(chunk.out)] == [0, 1, 2, 3, 4]
        calls = [(c.kwargs["skip"], c.kwargs["limit"]) for c in fetcher.call_args_list]
        assert calls == [(0, 3), (2, 3), (4, 3)]

    @pytest.mark.asyncio
    async def test_empty_model(self, post_only_project: Project) -> None:
        """Empty storage finishes immediately / 空存储立即完成。"""
        chunk = await Exporter(fetch_fn=make_fetcher({})).export_nodes(project=post_only_project)
        assert chunk.out == ""
        assert chunk.cursor == END_CURSOR


class TestExportCursorHandling:
    """Tests for cursor edge cases.
    游标边界情况测试。
    """

    @pytest.mark.asyncio
    async def test_done_cursor(self, post_only_project: Project) -> None:
        """Terminal cursor returns an empty terminal chunk / 终止游标返回空的终止分块。"""
        fetcher = make_fetcher({"Post": _posts(3)})
        chunk = await Exporter(fetch_fn=fetcher).export_nodes(project=post_only_project, cursor=END_CURSOR)
        assert chunk.out == ""
        assert chunk.cursor.is_done
        fetcher.assert_not_called()

    @pytest.mark.asyncio
    async def test_project_without_models(self) -> None:
        """No models means done / 无模型即完成。"""
        chunk = await Exporter(fetch_fn=make_fetcher({})).export_nodes(project=Project(id="empty"))
        assert chunk.cursor == END_CURSOR

    @pytest.mark.asyncio
    async def test_out_of_range_cursor(self, post_only_project: Project) -> None:
        """Out-of-range cursor raises / 越界游标抛出异常。"""
        with pytest.raises(ImportExportError) as exc_info:
            await Exporter(fetch_fn=make_fetcher({})).export_nodes(project=post_only_project, cursor=ExportCursor(3, 0))
        assert exc_info.value.error_code == "invalid_cursor"

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, post_only_project: Project) -> None:
        """Fetch errors abort the call / 读取错误中断本次调用。"""

        async def _broken(*, model: Model, skip: int, limit: int) -> list[DataItem]:
            raise StorageFetchError(message="connection lost")

        with pytest.raises(StorageFetchError):
            await Exporter(fetch_fn=_broken).export_nodes(project=post_only_project)


class TestExportListValues:
    """Tests for Exporter.export_list_values.
    Exporter.export_list_values 测试。
    """

    @pytest.mark.asyncio
    async def test_only_rows_with_lists(self, project: Project) -> None:
        """Rows without list values are skipped / 无列表值的行被跳过。"""
        rows = {
            "Post": [
                DataItem(id="p1", values={"title": "a", "tags": ["x", "y"]}),
                DataItem(id="p2", values={"title": "b", "tags": None}),
            ],
            "User": [DataItem(id="u1", values={"name": "n", "nicknames": ["nn"]})],
        }
        chunk = await Exporter(fetch_fn=make_fetcher(rows)).export_list_values(project=project)
        records = _records(chunk.out)
        assert records == [
            {"index": 0, "identifier": {"typeName": "Post", "id": "p1"}, "values": {"tags": ["x", "y"]}},
            {"index": 1, "identifier": {"typeName": "User", "id": "u1"}, "values": {"nicknames": ["nn"]}},
        ]
        assert chunk.cursor == END_CURSOR
