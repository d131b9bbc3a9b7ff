"""
游戏接口和会话管理

对局驱动：持有当前局面和行棋方，处理人类走子，向走法建议服务请求AI走子，
并在每一步之后推导对局状态。规则引擎本身不保存任何对局状态。
"""

import asyncio
import random
from dataclasses import dataclass, replace
from typing import List, Optional, Set

from .move_suggester import Difficulty, MoveSuggester, RandomMoveSuggester
from ..config.game_config import GameConfig
from ..rules_engine import (
    BoardValidator, ChessBoard, Color, GameStatus, INITIAL_FEN, Move, PieceType, Position, RuleEngine
)
from ..utils.exceptions import ConfigurationError, GameStateError, IllegalMoveError
from ..utils.logger import LoggerMixin


@dataclass(frozen=True)
class GameState:
    """
    对局状态值对象

    每一步都整体替换，不做原地修改。
    """
    board: ChessBoard
    side_to_move: Color = Color.RED
    status: GameStatus = GameStatus.PLAYING
    winner: Optional[Color] = None
    last_move: Optional[Move] = None
    ply: int = 0                        # 已走步数
    plies_since_capture: int = 0        # 连续无吃子步数
    end_reason: str = ""

    @property
    def is_over(self) -> bool:
        return self.status is not GameStatus.PLAYING

    def to_fen(self) -> str:
        return self.board.to_fen(self.side_to_move)


class GameSession(LoggerMixin):
    """
    人机对局会话

    AI请求进行期间拒绝人类输入；AI走法失败、超时或不合法时随机选择一步合法走法。
    """

    def __init__(self, config: Optional[GameConfig] = None,
                 suggester: Optional[MoveSuggester] = None,
                 rule_engine: Optional[RuleEngine] = None,
                 rng: Optional[random.Random] = None,
                 fen: Optional[str] = None):
        """
        初始化对局会话

        Args:
            config: 对局配置
            suggester: 走法建议器，None表示随机走子
            rule_engine: 规则引擎
            rng: 兜底随机走子所用的随机数生成器
            fen: 开局局面，None表示标准初始局面
        """
        self.config = config or GameConfig()
        self.rule_engine = rule_engine or RuleEngine()
        self.suggester = suggester or RandomMoveSuggester()
        self.validator = BoardValidator(self.rule_engine)

        try:
            self.human_color = Color.from_fen_token(self.config.human_color)
            self.difficulty = Difficulty(self.config.difficulty)
        except ValueError as e:
            raise ConfigurationError('game', str(e)) from e
        self._random = rng or random.Random()

        self.is_ai_thinking = False
        self.notice: Optional[str] = None
        self._generation = 0    # 每次开局递增，用于丢弃旧对局的AI走法
        self.state = self.reset(fen)

    @property
    def ai_color(self) -> Color:
        return self.human_color.opponent

    # ==================== 开局 ====================

    def reset(self, fen: Optional[str] = None) -> GameState:
        """
        开始新对局

        Args:
            fen: 开局局面，None表示标准初始局面

        Returns:
            GameState: 初始对局状态

        Raises:
            ParseError: FEN格式错误
            GameStateError: 局面未通过合法性校验
        """
        board, side = ChessBoard.from_fen(fen or INITIAL_FEN)

        if self.config.validate_start_position:
            is_valid, errors = self.validator.full_validation(board)
            if not is_valid:
                raise GameStateError("开局局面不合法", "; ".join(errors))

        self._generation += 1
        self.is_ai_thinking = False
        self.notice = None
        self.state = self._evaluate(GameState(board=board, side_to_move=side))
        self.log_info(f"新对局开始: {self.state.to_fen()}")
        return self.state

    # ==================== 查询 ====================

    def legal_moves(self) -> Set[Move]:
        """当前行棋方的所有合法走法"""
        if self.state.is_over:
            return set()
        return self.rule_engine.generate_legal_moves(self.state.board, self.state.side_to_move)

    def select(self, pos: Position) -> List[Position]:
        """
        选中棋子，返回可以走到的位置

        Args:
            pos: 棋子位置

        Returns:
            List[Position]: 目标位置列表，不是行棋方的棋子时为空
        """
        if self.state.is_over:
            return []
        moves = self.rule_engine.legal_moves_from(self.state.board, self.state.side_to_move, pos)
        return sorted(move.to_pos for move in moves)

    def status_text(self) -> str:
        """对局状态描述"""
        state = self.state
        if state.is_over:
            if state.winner is None:
                return f"和棋 ({state.end_reason})"
            result = "你赢了" if state.winner is self.human_color else "你输了"
            return f"{result} ({state.end_reason})"
        if self.is_ai_thinking:
            return "AI思考中..."
        if state.side_to_move is self.human_color:
            in_check = self.rule_engine.is_in_check(state.board, state.side_to_move)
            return f"轮到你走 ({self.human_color.display_name})" + (" - 被将军!" if in_check else "")
        return "等待AI走子..."

    # ==================== 状态推进 ====================

    def advance(self, state: GameState, move: Move) -> GameState:
        """
        执行走法并推导新的对局状态

        走法应当已经过合法性校验。

        Args:
            state: 当前对局状态
            move: 走法

        Returns:
            GameState: 新的对局状态
        """
        captured = state.board.piece_at(move.to_pos)
        board = self.rule_engine.apply_move(state.board, move)

        new_state = GameState(
            board=board,
            side_to_move=state.side_to_move.opponent,
            last_move=move,
            ply=state.ply + 1,
            plies_since_capture=0 if captured else state.plies_since_capture + 1
        )

        # 吃掉帅/将直接结束，不依赖合法走法过滤
        if captured is not None and captured.type is PieceType.GENERAL:
            return replace(new_state, status=GameStatus.CHECKMATE,
                           winner=state.side_to_move, end_reason="吃掉对方帅/将")

        return self._evaluate(new_state)

    def _evaluate(self, state: GameState) -> GameState:
        """根据规则引擎和对局配置推导对局状态"""
        side = state.side_to_move
        status = self.rule_engine.get_game_status(state.board, side)

        if status is GameStatus.CHECKMATE:
            return replace(state, status=status, winner=side.opponent, end_reason="将死")
        if status is GameStatus.STALEMATE:
            # 象棋规则中无子可走即判负
            return replace(state, status=status, winner=side.opponent, end_reason="困毙")
        if status is GameStatus.DRAW:
            return replace(state, status=status, end_reason="子力不足")

        if state.plies_since_capture >= self.config.no_capture_draw_plies:
            return replace(state, status=GameStatus.DRAW, end_reason="长时间无吃子")
        if state.ply >= self.config.max_plies:
            return replace(state, status=GameStatus.DRAW, end_reason="达到最大步数")

        return state

    def _check_can_move(self, color: Color):
        if self.state.is_over:
            raise GameStateError(self.state.status.value, "对局已结束")
        if self.is_ai_thinking:
            raise GameStateError("AI思考中", "请等待AI走子")
        if self.state.side_to_move is not color:
            raise GameStateError(f"轮到{self.state.side_to_move.display_name}", f"{color.display_name}不能走子")

    # ==================== 走子 ====================

    def play_move(self, move: Move) -> GameState:
        """
        执行人类走法

        Args:
            move: 走法

        Returns:
            GameState: 新的对局状态

        Raises:
            GameStateError: 对局已结束、AI思考中或不是人类的回合
            IllegalMoveError: 走法不合法
        """
        self._check_can_move(self.human_color)

        if not self.rule_engine.is_legal_move(self.state.board, self.state.side_to_move, move):
            raise IllegalMoveError(str(move), "不在合法走法中")

        self.state = self.advance(self.state, move)
        self.log_debug(f"人类走法: {move}")
        return self.state

    async def play_ai_turn(self) -> GameState:
        """
        执行AI回合

        人为延迟后向走法建议器请求走法；请求期间 is_ai_thinking 为True。

        Returns:
            GameState: 新的对局状态
        """
        self._check_can_move(self.ai_color)

        generation = self._generation
        self.is_ai_thinking = True
        self.notice = None
        try:
            if self.config.ai_move_delay > 0:
                await asyncio.sleep(self.config.ai_move_delay)
            if generation != self._generation:
                return self.state

            state = self.state
            legal_moves = self.rule_engine.generate_legal_moves(state.board, state.side_to_move)
            if not legal_moves:
                self.state = self._evaluate(state)
                return self.state

            move = await self._request_move(state, legal_moves)
            if generation != self._generation:
                self.log_info(f"对局已重新开始，丢弃AI走法: {move}")
                if not self.is_ai_thinking:
                    self.notice = None
                return self.state

            self.state = self.advance(state, move)
            self.log_debug(f"AI走法: {move}")
            return self.state
        finally:
            if generation == self._generation:
                self.is_ai_thinking = False

    async def _request_move(self, state: GameState, legal_moves: Set[Move]) -> Move:
        """请求走法建议，失败时随机选择一步合法走法"""
        ordered = sorted(legal_moves, key=Move.to_coordinate_notation)

        try:
            move = await asyncio.wait_for(
                self.suggester.suggest_move(state.to_fen(), self.difficulty, ordered, state.side_to_move),
                timeout=self.config.suggestion_timeout
            )
        except asyncio.TimeoutError:
            self.log_warning(f"走法建议超时: {self.config.suggestion_timeout}秒")
            self.notice = "AI思考超时，已随机走子"
            move = None
        except Exception as e:
            self.log_warning(f"走法建议失败: {e}")
            self.notice = "AI出现问题，已随机走子"
            move = None
        else:
            if move is None:
                self.notice = "AI没有给出走法，已随机走子"
            elif move not in legal_moves:
                self.log_warning(f"走法建议不合法: {move}")
                self.notice = "AI给出了非法走法，已随机走子"
                move = None

        if move is None:
            move = self._random.choice(ordered)
        return move
