"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: base.py
@DateTime: 2026-03-02
@Docs: Codec protocol for the interchange tree encoding.
交换格式树编码的编解码器协议。
"""

from decimal import Decimal
from typing import Any, Protocol

type JsonScalar = str | int | float | Decimal | bool | None
type JsonNode = JsonScalar | list[JsonNode] | dict[str, JsonNode]


class Codec(Protocol):
    """Codec protocol for converting host values to and from tree nodes.
    宿主值与树节点互相转换的编解码器协议。
    """

    def encode(self, value: Any) -> JsonNode:
        """Encode a host value into a tree node.
        将宿主值编码为树节点。

        Args:
            value: Any runtime value.
                任意运行时值。
        Returns:
            The encoded tree node. Encoding never fails.
                编码后的树节点，编码不会失败。
        """
        ...

    def decode(self, node: Any) -> Any:
        """Decode a tree node into a dynamic value.
        将树节点解码为动态值。

        Args:
            node: The tree node to decode.
                要解码的树节点。
        Returns:
            The decoded value.
                解码后的值。
        Raises:
            DecodingError: When the node has an unsupported shape.
                节点结构不受支持时抛出。
        """
        ...
