"""
象棋规则引擎模块

包含棋局表示、FEN编码、走法生成、将军与终局检测等核心功能。
"""

from .pieces import Color, PieceType, Piece, Position
from .move import Move
from .chess_board import ChessBoard, INITIAL_FEN, create_from_encoding, to_encoding
from .rule_engine import RuleEngine, GameStatus
from .board_validator import BoardValidator

__all__ = [
    'Color', 'PieceType', 'Piece', 'Position', 'Move',
    'ChessBoard', 'INITIAL_FEN', 'create_from_encoding', 'to_encoding',
    'RuleEngine', 'GameStatus', 'BoardValidator'
]
