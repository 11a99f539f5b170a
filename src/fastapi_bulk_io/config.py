"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: config.py
@DateTime: 2026-03-02
@Docs: Bulk import/export configuration helpers.
批量导入导出配置助手。

Configuration helpers for bulk import/export.
批量导入导出配置助手。

The export chunk cap and page size default to small values:
every export call returns at most one chunk of roughly ``export_char_limit``
characters so the caller can stream a tenant in many short requests.
导出分块上限与分页大小默认较小：每次导出调用最多返回约 ``export_char_limit``
个字符的分块，调用方可通过多次短请求导出整个租户的数据。

Environment variables / 环境变量:
        - BULK_IO_EXPORT_CHAR_LIMIT:
            Maximum serialized length of one export chunk (default: 1000).
            单个导出分块的最大序列化长度（默认 1000）。
        - BULK_IO_EXPORT_PAGE_SIZE:
            Rows requested per storage fetch (default: 1000).
            每次存储读取请求的行数（默认 1000）。
        - BULK_IO_MAX_UPLOAD_MB:
            Maximum size of an uploaded import bundle (default: 20).
            上传导入包的最大大小（默认 20）。
        - BULK_IO_LOCK_TTL_SECONDS:
            TTL of the optional per-project import lock (default: 300).
            可选项目级导入锁的 TTL（默认 300）。
        - BULK_IO_LOCK_NAMESPACE:
            Key prefix of the import lock (default: import).
            导入锁 key 前缀（默认 import）。

Examples:
        >>> from fastapi_bulk_io.config import resolve_config
        >>> cfg = resolve_config()
        >>> cfg.export_char_limit
        1000
"""

import os
from dataclasses import dataclass

from fastapi_bulk_io.exceptions import ImportExportError

DEFAULT_EXPORT_CHAR_LIMIT = 1000
DEFAULT_EXPORT_PAGE_SIZE = 1000
EXPORT_SHRINK_FACTOR = 10
_POSITIVE_FIELDS = ("export_char_limit", "export_page_size", "max_upload_mb", "lock_ttl_seconds")


@dataclass(frozen=True, slots=True)
class BulkIOConfig:
    """Bulk import/export configuration.

    批量导入导出配置。

    Attributes:
        export_char_limit: Maximum serialized length of one export chunk.
            单个导出分块的最大序列化长度。
        export_page_size: Rows per storage fetch, also the initial batch size.
            每次存储读取的行数，同时也是初始批大小。
        max_upload_mb: Maximum upload size in MB.
            最大上传大小（MB）。
        lock_ttl_seconds: Import lock TTL in seconds.
            导入锁 TTL（秒）。
        lock_namespace: Import lock key prefix.
            导入锁 key 前缀。
    """

    export_char_limit: int = DEFAULT_EXPORT_CHAR_LIMIT
    export_page_size: int = DEFAULT_EXPORT_PAGE_SIZE
    max_upload_mb: int = 20
    lock_ttl_seconds: int = 300
    lock_namespace: str = "import"

    def __post_init__(self) -> None:
        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ImportExportError(
                    message=f"{name} must be an integer >= 1 / {name} 必须为 >= 1 的整数",
                    details={"field": name, "value": value},
                    error_code="invalid_config",
                )


def _env_get(*names: str) -> str | None:
    """Get the first non-empty environment variable value.

    获取第一个非空环境变量值。
    """
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip():
            return v.strip()
    return None


def _env_positive_int(name: str) -> int | None:
    """
    Read a positive integer from the environment.
    从环境变量读取正整数。

    Args:
        name: Environment variable name.
            环境变量名。

    Returns:
        int | None: Parsed value, or None when unset.
        int | None: 解析值；未设置时返回 None。

    Raises:
        ImportExportError: When the value is not a positive integer.
            值不是正整数时抛出。
    """
    raw = _env_get(name)
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ImportExportError(
            message=f"{name} must be an integer / {name} 必须为整数",
            details={"value": raw},
            error_code="invalid_config",
        ) from exc
    if value < 1:
        raise ImportExportError(
            message=f"{name} must be >= 1 / {name} 必须 >= 1",
            details={"value": raw},
            error_code="invalid_config",
        )
    return value


def resolve_config(
    *,
    export_char_limit: int | None = None,
    export_page_size: int | None = None,
    max_upload_mb: int | None = None,
    lock_ttl_seconds: int | None = None,
    lock_namespace: str | None = None,
    env_prefix: str = "BULK_IO",
) -> BulkIOConfig:
    """Resolve configuration from parameters and environment variables.

    从参数和环境变量解析配置。

     Resolution order / 解析优先级:
        1) function parameters / 函数参数
        2) env: `{env_prefix}_*` / 环境变量 `{env_prefix}_*`
        3) defaults / 默认值

    Args:
        export_char_limit: Maximum serialized length of one export chunk.
            单个导出分块的最大序列化长度。
        export_page_size: Rows per storage fetch.
            每次存储读取的行数。
        max_upload_mb: Maximum upload size in MB.
            最大上传大小（MB）。
        lock_ttl_seconds: Import lock TTL in seconds.
            导入锁 TTL（秒）。
        lock_namespace: Import lock key prefix.
            导入锁 key 前缀。
        env_prefix: Prefix for environment variables.
            环境变量前缀（默认 BULK_IO）。

    Returns:
        A BulkIOConfig instance.
            返回 BulkIOConfig 配置实例。

    Raises:
        ImportExportError: When a parameter or environment value is not a positive integer.
            参数或环境变量值不是正整数时抛出。
    """
    defaults = BulkIOConfig()

    def pick(value: int | None, env_name: str, default: int) -> int:
        if value is not None:
            return value
        env_value = _env_positive_int(f"{env_prefix}_{env_name}")
        return env_value if env_value is not None else default

    return BulkIOConfig(
        export_char_limit=pick(export_char_limit, "EXPORT_CHAR_LIMIT", defaults.export_char_limit),
        export_page_size=pick(export_page_size, "EXPORT_PAGE_SIZE", defaults.export_page_size),
        max_upload_mb=pick(max_upload_mb, "MAX_UPLOAD_MB", defaults.max_upload_mb),
        lock_ttl_seconds=pick(lock_ttl_seconds, "LOCK_TTL_SECONDS", defaults.lock_ttl_seconds),
        lock_namespace=lock_namespace or _env_get(f"{env_prefix}_LOCK_NAMESPACE") or defaults.lock_namespace,
    )
