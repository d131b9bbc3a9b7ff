"""
棋子与坐标的基础数据结构

定义棋盘坐标、棋子颜色、棋子类型和棋子值对象。
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator


BOARD_WIDTH = 9    # 列数 (x: 0-8)
BOARD_HEIGHT = 10  # 行数 (y: 0-9)

# 红方在下方 (y 0-4)，黑方在上方 (y 5-9)
RIVER_Y = 4.5

PALACE_FILES = range(3, 6)
RED_PALACE_RANKS = range(0, 3)
BLACK_PALACE_RANKS = range(7, 10)


class Color(IntEnum):
    """棋子颜色，数值用于棋盘矩阵中的符号"""
    RED = 1
    BLACK = -1

    @property
    def opponent(self) -> 'Color':
        return Color(-self.value)

    @property
    def fen_token(self) -> str:
        """FEN中的行棋方标记，红方沿用国际象棋的 'w'"""
        return 'w' if self is Color.RED else 'b'

    @classmethod
    def from_fen_token(cls, token: str) -> 'Color':
        if token == 'w':
            return cls.RED
        if token == 'b':
            return cls.BLACK
        raise ValueError(f"未知的行棋方标记: {token}")

    @property
    def display_name(self) -> str:
        return '红方' if self is Color.RED else '黑方'


class PieceType(IntEnum):
    """棋子类型，数值即棋盘矩阵中的绝对值"""
    GENERAL = 1   # 帅/将
    ADVISOR = 2   # 仕/士
    ELEPHANT = 3  # 相/象
    HORSE = 4     # 马
    ROOK = 5      # 车
    CANNON = 6    # 炮
    SOLDIER = 7   # 兵/卒


# WXF记法字母，大写为红方
FEN_LETTERS = {
    PieceType.GENERAL: 'k',
    PieceType.ADVISOR: 'a',
    PieceType.ELEPHANT: 'b',
    PieceType.HORSE: 'n',
    PieceType.ROOK: 'r',
    PieceType.CANNON: 'c',
    PieceType.SOLDIER: 'p',
}

PIECE_NAMES = {
    (PieceType.GENERAL, Color.RED): "帅", (PieceType.GENERAL, Color.BLACK): "将",
    (PieceType.ADVISOR, Color.RED): "仕", (PieceType.ADVISOR, Color.BLACK): "士",
    (PieceType.ELEPHANT, Color.RED): "相", (PieceType.ELEPHANT, Color.BLACK): "象",
    (PieceType.HORSE, Color.RED): "马", (PieceType.HORSE, Color.BLACK): "马",
    (PieceType.ROOK, Color.RED): "车", (PieceType.ROOK, Color.BLACK): "车",
    (PieceType.CANNON, Color.RED): "炮", (PieceType.CANNON, Color.BLACK): "炮",
    (PieceType.SOLDIER, Color.RED): "兵", (PieceType.SOLDIER, Color.BLACK): "卒",
}


@dataclass(frozen=True, order=True)
class Position:
    """
    棋盘坐标

    x 为列 (0-8)，y 为行 (0-9)，红方底线为 y=0。
    """
    x: int
    y: int

    def __post_init__(self):
        if not (0 <= self.x < BOARD_WIDTH and 0 <= self.y < BOARD_HEIGHT):
            raise ValueError(f"无效的位置坐标: ({self.x}, {self.y})")

    @staticmethod
    def is_valid(x: int, y: int) -> bool:
        return 0 <= x < BOARD_WIDTH and 0 <= y < BOARD_HEIGHT

    def offset(self, dx: int, dy: int) -> 'Position':
        return Position(self.x + dx, self.y + dy)

    def to_notation(self) -> str:
        """坐标记法，如 (4, 0) -> 'e0'"""
        return f"{chr(ord('a') + self.x)}{self.y}"

    @classmethod
    def from_notation(cls, text: str) -> 'Position':
        if len(text) != 2 or not ('a' <= text[0] <= 'i') or not text[1].isdigit():
            raise ValueError(f"无效的坐标记法: {text}")
        return cls(ord(text[0]) - ord('a'), int(text[1]))

    @classmethod
    def all(cls) -> Iterator['Position']:
        for y in range(BOARD_HEIGHT):
            for x in range(BOARD_WIDTH):
                yield cls(x, y)

    def __str__(self) -> str:
        return self.to_notation()


def in_palace(x: int, y: int, color: Color) -> bool:
    """检查坐标是否在指定颜色的九宫内"""
    ranks = RED_PALACE_RANKS if color is Color.RED else BLACK_PALACE_RANKS
    return x in PALACE_FILES and y in ranks


def on_own_side(y: int, color: Color) -> bool:
    """检查行是否在己方半场（未过河）"""
    return y < RIVER_Y if color is Color.RED else y > RIVER_Y


@dataclass(frozen=True)
class Piece:
    """棋子值对象，吃子或移动时整体替换，不做修改"""
    type: PieceType
    color: Color

    @property
    def code(self) -> int:
        """棋盘矩阵中的整数编码：红正黑负"""
        return int(self.type) * int(self.color)

    @classmethod
    def from_code(cls, code: int) -> 'Piece':
        if code == 0:
            raise ValueError("空位没有棋子")
        return cls(PieceType(abs(code)), Color.RED if code > 0 else Color.BLACK)

    @property
    def fen_letter(self) -> str:
        letter = FEN_LETTERS[self.type]
        return letter.upper() if self.color is Color.RED else letter

    @classmethod
    def from_fen_letter(cls, letter: str) -> 'Piece':
        for piece_type, fen_letter in FEN_LETTERS.items():
            if letter == fen_letter:
                return cls(piece_type, Color.BLACK)
            if letter == fen_letter.upper():
                return cls(piece_type, Color.RED)
        raise ValueError(f"未知的棋子字母: {letter}")

    @property
    def name(self) -> str:
        return PIECE_NAMES[(self.type, self.color)]

    def __str__(self) -> str:
        return self.fen_letter
