"""
象棋规则引擎

实现各棋子的走法生成、合法性验证和终局状态检测。
所有方法都是纯函数：不修改传入的棋盘，也不保存棋盘的引用。
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from .chess_board import ChessBoard
from .move import Move
from .pieces import Color, PieceType, Position, in_palace, on_own_side
from ..utils.exceptions import IllegalMoveError

logger = logging.getLogger(__name__)


class GameStatus(Enum):
    """对局状态，由 (棋盘, 行棋方) 推导得出"""
    PLAYING = "playing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


# 只有这些棋子能过河进攻
ATTACKING_TYPES = frozenset({PieceType.HORSE, PieceType.ROOK, PieceType.CANNON, PieceType.SOLDIER})


class RuleEngine:
    """
    象棋规则引擎

    负责生成合法走法、验证走法合法性、检测将军和终局状态等。
    """

    def __init__(self):
        """初始化规则引擎"""
        self.orthogonal_steps = [(0, 1), (0, -1), (1, 0), (-1, 0)]   # 帅/将、车、炮
        self.diagonal_steps = [(1, 1), (1, -1), (-1, 1), (-1, -1)]   # 仕/士
        self.elephant_steps = [(2, 2), (2, -2), (-2, 2), (-2, -2)]   # 相/象：田字

        # 马：日字走法及对应的马腿位置
        self.horse_steps = [
            ((1, 2), (0, 1)), ((-1, 2), (0, 1)),
            ((1, -2), (0, -1)), ((-1, -2), (0, -1)),
            ((2, 1), (1, 0)), ((2, -1), (1, 0)),
            ((-2, 1), (-1, 0)), ((-2, -1), (-1, 0)),
        ]

        # 按棋子类型分派走法规则
        self._move_rules: Dict[PieceType, Callable[[ChessBoard, int, int, int], List[Move]]] = {
            PieceType.GENERAL: self._generate_general_moves,
            PieceType.ADVISOR: self._generate_advisor_moves,
            PieceType.ELEPHANT: self._generate_elephant_moves,
            PieceType.HORSE: self._generate_horse_moves,
            PieceType.ROOK: self._generate_rook_moves,
            PieceType.CANNON: self._generate_cannon_moves,
            PieceType.SOLDIER: self._generate_soldier_moves,
        }

    # ==================== 走法生成 ====================

    def generate_legal_moves(self, board: ChessBoard, side: Color) -> Set[Move]:
        """
        生成指定一方的所有合法走法

        Args:
            board: 当前棋盘状态
            side: 行棋方

        Returns:
            Set[Move]: 合法走法集合，执行后己方帅/将不会被攻击，也不会与对方照面
        """
        return {
            move for move in self.generate_pseudo_legal_moves(board, side)
            if not self._leaves_general_exposed(board, move, side)
        }

    def generate_pseudo_legal_moves(self, board: ChessBoard, side: Color) -> List[Move]:
        """生成符合棋子走法、但未检查己方帅/将安全的走法"""
        moves = []
        for pos, _ in board.get_all_pieces(side):
            moves.extend(self.generate_piece_moves(board, pos))
        return moves

    def generate_piece_moves(self, board: ChessBoard, pos: Position) -> List[Move]:
        """
        生成指定位置棋子的所有可能走法

        Args:
            board: 当前棋盘状态
            pos: 棋子位置

        Returns:
            List[Move]: 可能的走法列表，空位返回空列表
        """
        code = board.code_at(pos.x, pos.y)
        if code == 0:
            return []
        return self._move_rules[PieceType(abs(code))](board, pos.x, pos.y, code)

    def legal_moves_from(self, board: ChessBoard, side: Color, pos: Position) -> Set[Move]:
        """
        生成从指定起点出发的合法走法

        起点不是行棋方的棋子时返回空集合。
        """
        piece = board.piece_at(pos)
        if piece is None or piece.color is not side:
            return set()
        return {
            move for move in self.generate_piece_moves(board, pos)
            if not self._leaves_general_exposed(board, move, side)
        }

    @staticmethod
    def _can_land(code: int, target: int) -> bool:
        """目标点为空或为敌方棋子"""
        return target == 0 or (target > 0) != (code > 0)

    @staticmethod
    def _color_of(code: int) -> Color:
        return Color.RED if code > 0 else Color.BLACK

    def _generate_general_moves(self, board: ChessBoard, x: int, y: int, code: int) -> List[Move]:
        """生成帅/将的走法：九宫内直走一步"""
        color = self._color_of(code)
        moves = []
        for dx, dy in self.orthogonal_steps:
            nx, ny = x + dx, y + dy
            if in_palace(nx, ny, color) and self._can_land(code, board.code_at(nx, ny)):
                moves.append(Move(Position(x, y), Position(nx, ny)))
        return moves

    def _generate_advisor_moves(self, board: ChessBoard, x: int, y: int, code: int) -> List[Move]:
        """生成仕/士的走法：九宫内斜走一步"""
        color = self._color_of(code)
        moves = []
        for dx, dy in self.diagonal_steps:
            nx, ny = x + dx, y + dy
            if in_palace(nx, ny, color) and self._can_land(code, board.code_at(nx, ny)):
                moves.append(Move(Position(x, y), Position(nx, ny)))
        return moves

    def _generate_elephant_moves(self, board: ChessBoard, x: int, y: int, code: int) -> List[Move]:
        """生成相/象的走法：走田字，塞象眼则不能走，不能过河"""
        color = self._color_of(code)
        moves = []
        for dx, dy in self.elephant_steps:
            nx, ny = x + dx, y + dy
            if not Position.is_valid(nx, ny) or not on_own_side(ny, color):
                continue
            if board.code_at(x + dx // 2, y + dy // 2) != 0:  # 象眼被塞
                continue
            if self._can_land(code, board.code_at(nx, ny)):
                moves.append(Move(Position(x, y), Position(nx, ny)))
        return moves

    def _generate_horse_moves(self, board: ChessBoard, x: int, y: int, code: int) -> List[Move]:
        """生成马的走法：走日字，蹩马腿则不能走"""
        moves = []
        for (dx, dy), (lx, ly) in self.horse_steps:
            nx, ny = x + dx, y + dy
            if not Position.is_valid(nx, ny):
                continue
            if board.code_at(x + lx, y + ly) != 0:  # 马腿被绊
                continue
            if self._can_land(code, board.code_at(nx, ny)):
                moves.append(Move(Position(x, y), Position(nx, ny)))
        return moves

    def _generate_rook_moves(self, board: ChessBoard, x: int, y: int, code: int) -> List[Move]:
        """生成车的走法"""
        moves = []
        for dx, dy in self.orthogonal_steps:
            nx, ny = x + dx, y + dy
            while Position.is_valid(nx, ny):
                target = board.code_at(nx, ny)
                if target == 0:
                    moves.append(Move(Position(x, y), Position(nx, ny)))
                else:
                    if self._can_land(code, target):
                        moves.append(Move(Position(x, y), Position(nx, ny)))
                    break  # 无论如何都不能继续前进
                nx, ny = nx + dx, ny + dy
        return moves

    def _generate_cannon_moves(self, board: ChessBoard, x: int, y: int, code: int) -> List[Move]:
        """生成炮的走法：平移同车，吃子必须隔一个炮架"""
        moves = []
        for dx, dy in self.orthogonal_steps:
            found_screen = False
            nx, ny = x + dx, y + dy
            while Position.is_valid(nx, ny):
                target = board.code_at(nx, ny)
                if not found_screen:
                    if target == 0:
                        moves.append(Move(Position(x, y), Position(nx, ny)))
                    else:
                        found_screen = True
                elif target != 0:
                    if self._can_land(code, target):
                        moves.append(Move(Position(x, y), Position(nx, ny)))
                    break
                nx, ny = nx + dx, ny + dy
        return moves

    def _generate_soldier_moves(self, board: ChessBoard, x: int, y: int, code: int) -> List[Move]:
        """生成兵/卒的走法：过河前只能前进，过河后可以左右平移，不能后退"""
        color = self._color_of(code)
        forward = 1 if color is Color.RED else -1
        targets = [(x, y + forward)]
        if not on_own_side(y, color):
            targets.extend([(x - 1, y), (x + 1, y)])

        moves = []
        for nx, ny in targets:
            if Position.is_valid(nx, ny) and self._can_land(code, board.code_at(nx, ny)):
                moves.append(Move(Position(x, y), Position(nx, ny)))
        return moves

    # ==================== 合法性验证 ====================

    def side_of(self, board: ChessBoard, move: Move) -> Optional[Color]:
        """走法起点棋子所属的一方"""
        piece = board.piece_at(move.from_pos)
        return piece.color if piece else None

    def is_legal_move(self, board: ChessBoard, side: Color, move: Move) -> bool:
        """
        验证走法是否合法

        Args:
            board: 当前棋盘状态
            side: 行棋方
            move: 要验证的走法

        Returns:
            bool: 是否合法
        """
        return move in self.legal_moves_from(board, side, move.from_pos)

    def _leaves_general_exposed(self, board: ChessBoard, move: Move, side: Color) -> bool:
        """执行走法后己方帅/将是否被攻击或与对方照面"""
        new_board = board.make_move(move)
        return self.is_in_check(new_board, side) or self.generals_facing(new_board)

    def is_in_check(self, board: ChessBoard, side: Color) -> bool:
        """
        检查指定一方是否被将军

        帅/将所在位置出现在对方任一伪合法走法的终点上即为被将军。

        Args:
            board: 棋盘状态
            side: 被检查的一方

        Returns:
            bool: 是否被将军，没有帅/将时返回False
        """
        general_pos = board.find_general(side)
        if general_pos is None:
            return False
        return self.is_square_attacked(board, general_pos, side.opponent)

    def is_square_attacked(self, board: ChessBoard, target: Position, by: Color) -> bool:
        """检查 by 一方是否有伪合法走法能到达 target"""
        for pos, _ in board.get_all_pieces(by):
            for move in self.generate_piece_moves(board, pos):
                if move.to_pos == target:
                    return True
        return False

    def generals_facing(self, board: ChessBoard) -> bool:
        """
        检查帅将是否照面（同一列且中间没有棋子）

        Returns:
            bool: 是否照面
        """
        red = board.find_general(Color.RED)
        black = board.find_general(Color.BLACK)
        if red is None or black is None or red.x != black.x:
            return False

        low, high = sorted((red.y, black.y))
        return all(board.code_at(red.x, y) == 0 for y in range(low + 1, high))

    def gives_check(self, board: ChessBoard, move: Move) -> bool:
        """走法执行后是否将军对方"""
        side = self.side_of(board, move)
        if side is None:
            return False
        return self.is_in_check(board.make_move(move), side.opponent)

    # ==================== 走子执行 ====================

    def apply_move(self, board: ChessBoard, move: Move, validate: bool = False) -> ChessBoard:
        """
        执行走法，返回新的棋盘

        Args:
            board: 当前棋盘状态
            move: 走法，应当取自 generate_legal_moves
            validate: 是否重新验证走法合法性

        Returns:
            ChessBoard: 新的棋盘状态

        Raises:
            IllegalMoveError: validate为True且走法不合法
        """
        side = self.side_of(board, move)
        if side is None:
            raise IllegalMoveError(str(move), "起点没有棋子")
        if validate and not self.is_legal_move(board, side, move):
            raise IllegalMoveError(str(move), f"{side.display_name}不能这样走")

        captured = board.piece_at(move.to_pos)
        if captured is not None and captured.type is PieceType.GENERAL:
            logger.warning(f"{captured.name}被吃，对局立即结束: {move}")

        return board.make_move(move)

    # ==================== 终局检测 ====================

    def is_checkmate(self, board: ChessBoard, side: Color) -> bool:
        """被将军且没有合法走法"""
        return self.is_in_check(board, side) and not self.generate_legal_moves(board, side)

    def is_stalemate(self, board: ChessBoard, side: Color) -> bool:
        """困毙：没有被将军，但没有合法走法"""
        return not self.is_in_check(board, side) and not self.generate_legal_moves(board, side)

    def is_terminal(self, board: ChessBoard, side: Color) -> bool:
        """
        检查行棋方是否已无路可走

        帅/将已被吃掉时同样视为终局。
        """
        if board.find_general(side) is None:
            return True
        return not self.generate_legal_moves(board, side)

    def is_insufficient_material(self, board: ChessBoard) -> bool:
        """
        检查是否子力不足

        双方都只剩帅/将、仕/士、相/象时，谁也无法过河进攻。
        """
        return all(piece.type not in ATTACKING_TYPES for _, piece in board.get_all_pieces())

    def get_game_status(self, board: ChessBoard, side: Color) -> GameStatus:
        """
        获取行棋方所面对的对局状态

        Args:
            board: 棋盘状态
            side: 行棋方

        Returns:
            GameStatus: 将死、困毙、子力不足和棋或对局进行中
        """
        if board.find_general(side) is None:
            return GameStatus.CHECKMATE

        if not self.generate_legal_moves(board, side):
            if self.is_in_check(board, side):
                return GameStatus.CHECKMATE
            return GameStatus.STALEMATE

        if self.is_insufficient_material(board):
            return GameStatus.DRAW

        return GameStatus.PLAYING
