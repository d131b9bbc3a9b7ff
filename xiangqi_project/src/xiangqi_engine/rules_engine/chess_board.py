"""
象棋棋盘数据结构

定义象棋棋盘的表示、FEN格式转换和走子执行。棋盘对象不可变，
执行走法总是返回新的棋盘。
"""

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .move import Move
from .pieces import BOARD_HEIGHT, BOARD_WIDTH, Color, Piece, PieceType, Position
from ..utils.exceptions import IllegalMoveError, ParseError


INITIAL_FEN = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR w - - 0 1"

# FEN中行棋方之后的字段只为格式兼容而保留
FEN_PLACEHOLDER_FIELDS = "- - 0 1"

_DIGITS = "0123456789"


class ChessBoard:
    """
    象棋棋盘类

    内部使用 10x9 的只读矩阵 (行y x 列x)，红方棋子为正数，黑方为负数，
    绝对值为 PieceType 的数值。
    """

    __slots__ = ('_grid',)

    def __init__(self, grid: Optional[np.ndarray] = None):
        """
        初始化棋盘

        Args:
            grid: 10x9的整数矩阵，None表示空棋盘
        """
        if grid is None:
            grid = np.zeros((BOARD_HEIGHT, BOARD_WIDTH), dtype=np.int8)
        else:
            grid = np.array(grid, dtype=np.int8)
            if grid.shape != (BOARD_HEIGHT, BOARD_WIDTH):
                raise ValueError(f"棋盘尺寸错误: {grid.shape}, 应为({BOARD_HEIGHT}, {BOARD_WIDTH})")
        grid.flags.writeable = False
        self._grid = grid

    # ==================== 构造 ====================

    @classmethod
    def initial(cls) -> 'ChessBoard':
        """标准初始局面"""
        board, _ = cls.from_fen(INITIAL_FEN)
        return board

    @classmethod
    def from_pieces(cls, pieces: Iterable[Tuple[Position, Piece]]) -> 'ChessBoard':
        """
        从棋子列表创建棋盘

        Args:
            pieces: [(位置, 棋子), ...]

        Returns:
            ChessBoard: 棋盘对象
        """
        grid = np.zeros((BOARD_HEIGHT, BOARD_WIDTH), dtype=np.int8)
        for pos, piece in pieces:
            grid[pos.y, pos.x] = piece.code
        return cls(grid)

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> 'ChessBoard':
        """从带符号整数矩阵创建棋盘，matrix[y][x]"""
        return cls(matrix)

    def to_matrix(self) -> np.ndarray:
        """
        转换为矩阵格式

        Returns:
            np.ndarray: 可写的10x9矩阵副本
        """
        return self._grid.copy()

    # ==================== FEN ====================

    @classmethod
    def from_fen(cls, fen: str) -> Tuple['ChessBoard', Color]:
        """
        从FEN格式加载棋局

        行从黑方底线 (y=9) 写到红方底线 (y=0)，行棋方之后的字段被忽略。

        Args:
            fen: FEN格式字符串

        Returns:
            Tuple[ChessBoard, Color]: (棋盘, 行棋方)

        Raises:
            ParseError: 格式错误，token为出错的片段
        """
        fields = fen.split()
        if not fields:
            raise ParseError(fen, "空的FEN字符串")
        if len(fields) < 2:
            raise ParseError(fen, "缺少行棋方字段")

        rows = fields[0].split("/")
        if len(rows) != BOARD_HEIGHT:
            raise ParseError(fields[0], f"FEN应包含{BOARD_HEIGHT}行，实际为{len(rows)}行")

        grid = np.zeros((BOARD_HEIGHT, BOARD_WIDTH), dtype=np.int8)

        for i, row in enumerate(rows):
            y = BOARD_HEIGHT - 1 - i
            x = 0
            for char in row:
                if char in _DIGITS:
                    run = int(char)
                    if run == 0:
                        raise ParseError(char, f"第{i + 1}行出现空位数0")
                    x += run
                else:
                    try:
                        piece = Piece.from_fen_letter(char)
                    except ValueError:
                        raise ParseError(char, f"第{i + 1}行出现未知的棋子字母") from None
                    if x >= BOARD_WIDTH:
                        raise ParseError(row, f"第{i + 1}行列数超出范围")
                    grid[y, x] = piece.code
                    x += 1
                if x > BOARD_WIDTH:
                    raise ParseError(row, f"第{i + 1}行列数超出范围")
            if x != BOARD_WIDTH:
                raise ParseError(row, f"第{i + 1}行应有{BOARD_WIDTH}列，实际为{x}列")

        try:
            side = Color.from_fen_token(fields[1])
        except ValueError:
            raise ParseError(fields[1], "未知的行棋方标记，应为 'w' 或 'b'") from None

        return cls(grid), side

    def to_fen(self, side: Color) -> str:
        """
        转换为FEN格式

        Args:
            side: 行棋方

        Returns:
            str: FEN格式字符串
        """
        fen_rows = []
        for y in range(BOARD_HEIGHT - 1, -1, -1):
            fen_row = ""
            empty_count = 0
            for x in range(BOARD_WIDTH):
                code = int(self._grid[y, x])
                if code == 0:
                    empty_count += 1
                    continue
                if empty_count > 0:
                    fen_row += str(empty_count)
                    empty_count = 0
                fen_row += Piece.from_code(code).fen_letter
            if empty_count > 0:
                fen_row += str(empty_count)
            fen_rows.append(fen_row)

        return f"{'/'.join(fen_rows)} {side.fen_token} {FEN_PLACEHOLDER_FIELDS}"

    # ==================== 查询 ====================

    def code_at(self, x: int, y: int) -> int:
        """
        获取指定坐标的整数编码，0表示空位；越界视为空位

        走法生成的热路径使用此方法，避免构造Position和Piece对象。
        """
        if 0 <= x < BOARD_WIDTH and 0 <= y < BOARD_HEIGHT:
            return int(self._grid[y, x])
        return 0

    def piece_at(self, pos: Position) -> Optional[Piece]:
        """
        获取指定位置的棋子

        Args:
            pos: 位置坐标

        Returns:
            Optional[Piece]: 棋子，空位返回None
        """
        code = int(self._grid[pos.y, pos.x])
        return Piece.from_code(code) if code else None

    def is_empty(self, pos: Position) -> bool:
        return self._grid[pos.y, pos.x] == 0

    def find_general(self, color: Color) -> Optional[Position]:
        """
        找到指定一方的帅/将的位置

        Returns:
            Optional[Position]: 帅/将的位置，如果找不到返回None
        """
        ys, xs = np.nonzero(self._grid == PieceType.GENERAL * color)
        if len(ys) == 0:
            return None
        return Position(int(xs[0]), int(ys[0]))

    def get_all_pieces(self, color: Optional[Color] = None) -> List[Tuple[Position, Piece]]:
        """
        获取所有棋子的位置和类型

        Args:
            color: 指定一方，None表示获取所有棋子

        Returns:
            List[Tuple[Position, Piece]]: [(位置, 棋子), ...]
        """
        pieces = []
        ys, xs = np.nonzero(self._grid)
        for y, x in zip(ys, xs):
            piece = Piece.from_code(int(self._grid[y, x]))
            if color is None or piece.color is color:
                pieces.append((Position(int(x), int(y)), piece))
        return pieces

    def count_pieces(self, color: Optional[Color] = None) -> Dict[Piece, int]:
        """统计每种棋子的数量"""
        counts: Dict[Piece, int] = {}
        for _, piece in self.get_all_pieces(color):
            counts[piece] = counts.get(piece, 0) + 1
        return counts

    def piece_count(self, color: Optional[Color] = None) -> int:
        if color is None:
            return int(np.count_nonzero(self._grid))
        if color is Color.RED:
            return int(np.count_nonzero(self._grid > 0))
        return int(np.count_nonzero(self._grid < 0))

    # ==================== 走子 ====================

    def make_move(self, move: Move) -> 'ChessBoard':
        """
        执行走法，返回新的棋盘

        终点上的棋子被吃掉且不做记录；当前棋盘保持不变。

        Args:
            move: 要执行的走法

        Returns:
            ChessBoard: 新的棋盘状态
        """
        from_pos, to_pos = move.from_pos, move.to_pos
        moving = self._grid[from_pos.y, from_pos.x]
        if moving == 0:
            raise IllegalMoveError(str(move), "起点没有棋子")

        grid = self._grid.copy()
        grid[to_pos.y, to_pos.x] = moving
        grid[from_pos.y, from_pos.x] = 0
        return ChessBoard(grid)

    def with_piece(self, pos: Position, piece: Optional[Piece]) -> 'ChessBoard':
        """返回在指定位置放置(或移除)棋子后的新棋盘"""
        grid = self._grid.copy()
        grid[pos.y, pos.x] = piece.code if piece else 0
        return ChessBoard(grid)

    # ==================== 显示 ====================

    def to_visual_string(self) -> str:
        """
        转换为可视化字符串，黑方在上

        Returns:
            str: 可视化的棋盘字符串
        """
        lines = ["   a b c d e f g h i"]
        for y in range(BOARD_HEIGHT - 1, -1, -1):
            cells = []
            for x in range(BOARD_WIDTH):
                code = int(self._grid[y, x])
                cells.append(Piece.from_code(code).name if code else "十")
            lines.append(f"{y}  " + "".join(cells))
            if y == 5:
                lines.append("   ～～ 楚河  汉界 ～～")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_visual_string()

    def __repr__(self) -> str:
        return f"ChessBoard({self.to_fen(Color.RED).split()[0]!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, ChessBoard):
            return NotImplemented
        return np.array_equal(self._grid, other._grid)

    def __hash__(self) -> int:
        return hash(self._grid.tobytes())


def create_from_encoding(text: str) -> Tuple[ChessBoard, Color]:
    """解析FEN，返回 (棋盘, 行棋方)"""
    return ChessBoard.from_fen(text)


def to_encoding(board: ChessBoard, side: Color) -> str:
    """将 (棋盘, 行棋方) 编码为FEN"""
    return board.to_fen(side)
