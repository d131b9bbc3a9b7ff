"""
中国象棋规则引擎 (Xiangqi)

一个中国象棋规则引擎，包含走法生成、终局判定、人机对局和可插拔的走法建议服务。
"""

__version__ = "0.1.0"
__author__ = "Xiangqi Engine Team"
__description__ = "中国象棋规则引擎 - 走法生成、终局判定和走法建议服务"

from xiangqi_project.src import xiangqi_engine

__all__ = [
    "xiangqi_engine",
    "__version__",
    "__author__",
    "__description__",
]
