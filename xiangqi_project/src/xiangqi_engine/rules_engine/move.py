"""
象棋走法数据结构

定义象棋走法的表示和转换功能。
"""

from dataclasses import dataclass

from .pieces import Position
from ..utils.exceptions import ParseError


@dataclass(frozen=True)
class Move:
    """
    象棋走法类

    只记录起点和终点；被吃的棋子由棋盘决定，不随走法保存。
    """
    from_pos: Position
    to_pos: Position

    def __post_init__(self):
        if self.from_pos == self.to_pos:
            raise ValueError(f"起点和终点相同: {self.from_pos}")

    def to_coordinate_notation(self) -> str:
        """
        转换为坐标记法

        Returns:
            str: 坐标记法字符串，如 "b2e2"
        """
        return f"{self.from_pos.to_notation()}{self.to_pos.to_notation()}"

    @classmethod
    def from_coordinate_notation(cls, notation: str) -> 'Move':
        """
        从坐标记法创建Move对象

        Args:
            notation: 坐标记法字符串，如 "b2e2"

        Returns:
            Move: Move对象
        """
        text = notation.strip()
        if len(text) != 4:
            raise ParseError(notation, "坐标记法应为4个字符")
        try:
            return cls(Position.from_notation(text[:2]), Position.from_notation(text[2:]))
        except ValueError as e:
            raise ParseError(notation, str(e)) from e

    def __str__(self) -> str:
        return self.to_coordinate_notation()

    def to_dict(self) -> dict:
        return {
            'from_pos': (self.from_pos.x, self.from_pos.y),
            'to_pos': (self.to_pos.x, self.to_pos.y),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Move':
        return cls(
            from_pos=Position(*data['from_pos']),
            to_pos=Position(*data['to_pos'])
        )
