"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: interchange.py
@DateTime: 2026-03-02
@Docs: Interchange codec between dynamic values and JSON trees.
动态值与 JSON 树之间的交换格式编解码器。

Encoding is permissive (unknown types fall back to a string), decoding is
strict (unknown node shapes raise ``DecodingError``). Only values produced by
this library round-trip exactly.
编码是宽松的（未知类型回退为字符串），解码是严格的（未知节点结构抛出
``DecodingError``）。只有本库自身产生的值可以精确往返。
"""

import json
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from fastapi_bulk_io.codecs.base import Codec, JsonNode
from fastapi_bulk_io.exceptions import DecodingError


def _encode_decimal(value: Decimal) -> JsonNode:
    if not value.is_finite():
        return str(value)
    exponent = value.as_tuple().exponent
    if isinstance(exponent, int) and exponent >= 0:
        return int(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _format_scalar(value: Any) -> str:
    """Return the string representation used for non-JSON host types.
    返回非 JSON 宿主类型使用的字符串表示。
    """
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class InterchangeCodec(Codec):
    """Default interchange codec.
    默认交换格式编解码器。
    """

    def encode(self, value: Any) -> JsonNode:
        # bool before int: bool is an int subclass
        if value is None or isinstance(value, (bool, str)):
            return value
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, Decimal):
            return _encode_decimal(value)
        if isinstance(value, Mapping):
            return {str(k): self.encode(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.encode(v) for v in value]
        if isinstance(value, (set, frozenset)):
            return [self.encode(v) for v in sorted(value, key=repr)]
        return _format_scalar(value)

    def decode(self, node: Any) -> Any:
        if isinstance(node, list):
            return [self.decode(v) for v in node]
        if isinstance(node, dict):
            return {str(k): self.decode(v) for k, v in node.items()}
        if node is None or isinstance(node, (str, bool, int, float, Decimal)):
            return node
        raise DecodingError(
            message=f"unsupported scalar type: {type(node).__name__} / 不支持的标量类型: {type(node).__name__}",
            details={"type": type(node).__name__},
        )


_default_codec = InterchangeCodec()


def encode(value: Any) -> JsonNode:
    """Encode a host value with the default codec.
    使用默认编解码器编码宿主值。

    Args:
        value: Any runtime value.
            任意运行时值。

    Returns:
        JsonNode: Encoded tree node.
        JsonNode: 编码后的树节点。
    """
    return _default_codec.encode(value)


def decode(node: Any) -> Any:
    """Decode a tree node with the default codec.
    使用默认编解码器解码树节点。

    Args:
        node: Tree node.
            树节点。

    Returns:
        Any: Decoded value.
        Any: 解码后的值。

    Raises:
        DecodingError: When the node has an unsupported shape.
            节点结构不受支持时抛出。
    """
    return _default_codec.decode(node)


def dumps(node: JsonNode) -> str:
    """Render an encoded node as compact JSON text.
    将已编码节点渲染为紧凑 JSON 文本。

    Args:
        node: Encoded tree node.
            已编码的树节点。

    Returns:
        str: Compact JSON text.
        str: 紧凑 JSON 文本。
    """
    return json.dumps(node, ensure_ascii=False, separators=(",", ":"), default=_format_scalar)


def loads(text: str | bytes) -> Any:
    """Parse JSON text and decode it.
    解析 JSON 文本并解码。

    Args:
        text: JSON text.
            JSON 文本。

    Returns:
        Any: Decoded value.
        Any: 解码后的值。

    Raises:
        DecodingError: When the text is not valid JSON.
            文本不是合法 JSON 时抛出。
    """
    try:
        node = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodingError(
            message=f"Invalid JSON: {exc} / 非法 JSON: {exc}",
            details={"error": str(exc)},
        ) from exc
    return decode(node)
