"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-03-02
@Docs: Interchange codecs.
交换格式编解码器。
"""

from fastapi_bulk_io.codecs.base import Codec, JsonNode
from fastapi_bulk_io.codecs.interchange import InterchangeCodec, decode, dumps, encode, loads

__all__ = [
    "Codec",
    "InterchangeCodec",
    "JsonNode",
    "decode",
    "dumps",
    "encode",
    "loads",
]
