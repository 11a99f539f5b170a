"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-03-03
@Docs: SQLAlchemy storage backend exports.
SQLAlchemy 存储后端导出定义。
"""

from fastapi_bulk_io.contrib.sqlalchemy.adapters import (
    SqlAlchemyStatementBuilder,
    SqlAlchemyStorage,
    build_metadata,
    coerce_value,
)

__all__ = [
    "SqlAlchemyStatementBuilder",
    "SqlAlchemyStorage",
    "build_metadata",
    "coerce_value",
]
