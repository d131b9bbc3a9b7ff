"""
中国象棋规则引擎

包括棋局表示与FEN编码、走法生成、将军与终局检测、对局驱动和走法建议接口。
"""

__version__ = "0.1.0"
__author__ = "Xiangqi Engine Team"

from .rules_engine import ChessBoard, Move, RuleEngine, GameStatus, INITIAL_FEN
from .config import ConfigManager, GameConfig, SuggesterConfig, SystemConfig
from .utils import setup_logger, get_logger, XiangqiError

__all__ = [
    "__version__", "__author__",
    "ChessBoard", "Move", "RuleEngine", "GameStatus", "INITIAL_FEN",
    "ConfigManager", "GameConfig", "SuggesterConfig", "SystemConfig",
    "setup_logger", "get_logger", "XiangqiError"
]
