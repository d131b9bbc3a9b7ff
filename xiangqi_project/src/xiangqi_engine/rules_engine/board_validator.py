"""
棋局合法性验证器

检查一个棋盘是否可能出现在正常对局中，用于拒绝不合理的开局FEN。
"""

from typing import Any, Dict, List, Tuple

from .chess_board import ChessBoard
from .pieces import Color, Piece, PieceType, in_palace, on_own_side
from .rule_engine import RuleEngine


# 红方仕、相的合法落点 (x, y)，黑方按行镜像
RED_ADVISOR_POINTS = frozenset({(3, 0), (5, 0), (4, 1), (3, 2), (5, 2)})
RED_ELEPHANT_POINTS = frozenset({(2, 0), (6, 0), (0, 2), (4, 2), (8, 2), (2, 4), (6, 4)})


def _mirror(points: frozenset) -> frozenset:
    return frozenset((x, 9 - y) for x, y in points)


class BoardValidator:
    """
    棋局合法性验证器

    提供各种棋局状态的验证功能。
    """

    def __init__(self, rule_engine: RuleEngine = None):
        """初始化验证器"""
        self.rule_engine = rule_engine or RuleEngine()

        # 棋子数量限制
        self.piece_limits = {
            PieceType.GENERAL: 1,
            PieceType.ADVISOR: 2,
            PieceType.ELEPHANT: 2,
            PieceType.HORSE: 2,
            PieceType.ROOK: 2,
            PieceType.CANNON: 2,
            PieceType.SOLDIER: 5,
        }

        self.advisor_points = {Color.RED: RED_ADVISOR_POINTS, Color.BLACK: _mirror(RED_ADVISOR_POINTS)}
        self.elephant_points = {Color.RED: RED_ELEPHANT_POINTS, Color.BLACK: _mirror(RED_ELEPHANT_POINTS)}

    def validate_piece_counts(self, board: ChessBoard) -> Tuple[bool, List[str]]:
        """
        验证棋子数量

        Args:
            board: 要验证的棋盘

        Returns:
            Tuple[bool, List[str]]: (是否合法, 错误信息列表)
        """
        errors = []
        counts = board.count_pieces()

        for color in Color:
            for piece_type, limit in self.piece_limits.items():
                piece = Piece(piece_type, color)
                count = counts.get(piece, 0)
                if piece_type is PieceType.GENERAL and count != 1:
                    errors.append(f"{piece.name}数量错误: {count}, 应为1")
                elif count > limit:
                    errors.append(f"{color.display_name}{piece.name}数量超限: {count} > {limit}")

        return len(errors) == 0, errors

    def validate_piece_positions(self, board: ChessBoard) -> Tuple[bool, List[str]]:
        """
        验证棋子位置的合法性

        Args:
            board: 要验证的棋盘

        Returns:
            Tuple[bool, List[str]]: (是否合法, 错误信息列表)
        """
        errors = []

        for pos, piece in board.get_all_pieces():
            color = piece.color
            label = f"{color.display_name}{piece.name}位置错误: {pos}"

            if piece.type is PieceType.GENERAL:
                if not in_palace(pos.x, pos.y, color):
                    errors.append(f"{label}, 应在九宫内")
            elif piece.type is PieceType.ADVISOR:
                if (pos.x, pos.y) not in self.advisor_points[color]:
                    errors.append(f"{label}, 应在九宫斜线上")
            elif piece.type is PieceType.ELEPHANT:
                if not on_own_side(pos.y, color):
                    errors.append(f"{label}, 不能过河")
                elif (pos.x, pos.y) not in self.elephant_points[color]:
                    errors.append(f"{label}, 不在田字落点上")
            elif piece.type is PieceType.SOLDIER:
                # 兵/卒不能后退：不会出现在起始行之后，未过河时只能在原来的列上
                rank = pos.y if color is Color.RED else 9 - pos.y
                if rank < 3:
                    errors.append(f"{label}, 不能在起始行之后")
                elif rank < 5 and pos.x % 2 != 0:
                    errors.append(f"{label}, 未过河时不能离开原列")

        return len(errors) == 0, errors

    def validate_generals_facing(self, board: ChessBoard) -> Tuple[bool, List[str]]:
        """
        验证帅将是否照面

        Args:
            board: 要验证的棋盘

        Returns:
            Tuple[bool, List[str]]: (是否合法, 错误信息列表)
        """
        if self.rule_engine.generals_facing(board):
            return False, ["帅将照面，中间无棋子阻挡"]
        return True, []

    def full_validation(self, board: ChessBoard) -> Tuple[bool, List[str]]:
        """
        完整的棋局验证

        Args:
            board: 要验证的棋盘

        Returns:
            Tuple[bool, List[str]]: (是否合法, 所有错误信息列表)
        """
        all_errors = []
        for validation_func in self._validations().values():
            _, errors = validation_func(board)
            all_errors.extend(errors)
        return len(all_errors) == 0, all_errors

    def get_validation_report(self, board: ChessBoard) -> Dict[str, Any]:
        """
        获取详细的验证报告

        Args:
            board: 要验证的棋盘

        Returns:
            Dict[str, Any]: 验证报告
        """
        report = {
            'overall_valid': True,
            'total_errors': 0,
            'validations': {}
        }

        for test_name, test_func in self._validations().items():
            is_valid, errors = test_func(board)
            report['validations'][test_name] = {
                'valid': is_valid,
                'errors': errors,
                'error_count': len(errors)
            }
            if not is_valid:
                report['overall_valid'] = False
                report['total_errors'] += len(errors)

        return report

    def _validations(self):
        return {
            'piece_counts': self.validate_piece_counts,
            'piece_positions': self.validate_piece_positions,
            'generals_facing': self.validate_generals_facing,
        }
