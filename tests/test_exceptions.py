"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: test_exceptions.py
@DateTime: 2026-03-03
@Docs: Tests for exceptions.py module.
exceptions.py 模块测试。
"""

import pytest

from fastapi_bulk_io.exceptions import (
    DecodingError,
    ImportExportError,
    SchemaError,
    StorageFetchError,
    StorageWriteError,
)


class TestImportExportError:
    """Tests for ImportExportError.
    ImportExportError 测试。
    """

    def test_attributes(self) -> None:
        """All attributes assigned correctly / 所有属性正确赋值。"""
        exc = ImportExportError(
            message="test error",
            status_code=422,
            details={"key": "val"},
            error_code="custom_error",
        )
        assert exc.message == "test error"
        assert exc.status_code == 422
        assert exc.details == {"key": "val"}
        assert exc.error_code == "custom_error"

    def test_defaults(self) -> None:
        """Default status_code and error_code / 默认 status_code 和 error_code。"""
        exc = ImportExportError(message="msg")
        assert exc.status_code == 400
        assert exc.error_code == "import_export_error"
        assert str(exc) == "msg"


@pytest.mark.parametrize(
    ("cls", "status_code", "error_code"),
    [
        (SchemaError, 400, "schema_error"),
        (DecodingError, 400, "decoding_error"),
        (StorageWriteError, 500, "storage_write_error"),
        (StorageFetchError, 500, "storage_fetch_error"),
    ],
)
def test_subclass_codes(cls: type[ImportExportError], status_code: int, error_code: str) -> None:
    exc = cls(message="boom", details={"a": 1})
    assert isinstance(exc, ImportExportError)
    assert exc.status_code == status_code
    assert exc.error_code == error_code
    assert exc.details == {"a": 1}
