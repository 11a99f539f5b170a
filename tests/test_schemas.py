"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_schemas.py
@DateTime: 2026-03-03
@Docs: Tests for schemas.py module.
schemas.py 模块测试。
"""

from fastapi_bulk_io.exporter import END_CURSOR, ExportCursor
from fastapi_bulk_io.formats import ExportFileType, ValueType
from fastapi_bulk_io.schemas import CursorModel, ExportRequest, ExportResponse, ImportResponse


class TestCursorModel:
    """Tests for CursorModel.
    CursorModel 测试。
    """

    def test_defaults_to_start(self) -> None:
        """Default cursor is (0, 0) / 默认游标为 (0, 0)。"""
        assert CursorModel().to_cursor() == ExportCursor(0, 0)

    def test_wire_names(self) -> None:
        """camelCase on the wire / 线上使用驼峰命名。"""
        model = CursorModel.from_cursor(ExportCursor(2, 30))
        assert model.model_dump(by_alias=True) == {"modelIndex": 2, "rowOffset": 30}
        assert CursorModel.model_validate({"modelIndex": 2, "rowOffset": 30}) == model


class TestExportRequest:
    """Tests for ExportRequest.
    ExportRequest 测试。
    """

    def test_defaults(self) -> None:
        """Defaults to nodes from the start / 默认从头导出节点。"""
        req = ExportRequest()
        assert req.file_type == ExportFileType.NODES
        assert req.cursor.to_cursor() == ExportCursor(0, 0)


class TestResponses:
    """Tests for response models.
    响应模型测试。
    """

    def test_import_response_ok(self) -> None:
        """ok reflects failures / ok 反映失败情况。"""
        assert ImportResponse(value_type=ValueType.NODES, total_records=0).ok
        assert not ImportResponse(value_type=ValueType.NODES, total_records=1, failures=["Index: 0 Message: x"]).ok

    def test_export_response_done(self) -> None:
        """done follows the terminal cursor / done 取决于终止游标。"""
        resp = ExportResponse(out="", cursor=CursorModel.from_cursor(END_CURSOR))
        assert resp.done
        assert resp.model_dump(by_alias=True) == {"out": "", "cursor": {"modelIndex": -1, "rowOffset": -1}, "isFull": False}
