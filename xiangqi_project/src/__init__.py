"""
Xiangqi 源代码模块

包含一个子系统：
- xiangqi_engine: 象棋规则引擎与对局驱动
"""

from . import xiangqi_engine

__all__ = [
    "xiangqi_engine",
]
