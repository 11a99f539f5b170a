"""
@Author: li
@Email: lijianqiao2906@live.com
@FileName: __init__.py
@DateTime: 2026-03-03
@Docs: Optional storage backends.
可选存储后端。
"""
