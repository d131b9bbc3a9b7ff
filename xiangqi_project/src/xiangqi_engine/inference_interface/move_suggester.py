"""
走法建议服务

定义对局驱动所使用的走法建议接口，以及随机、启发式和远程HTTP三种实现。
建议结果不保证合法，调用方需要自行校验。
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence

import httpx
from pydantic import BaseModel, Field, ValidationError

from ..config.game_config import SuggesterConfig
from ..rules_engine import ChessBoard, Color, Move, PieceType, RuleEngine
from ..utils.exceptions import ConfigurationError, ParseError, SuggestionError

logger = logging.getLogger(__name__)


class Difficulty(Enum):
    """AI难度"""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


# ==================== 数据模型 ====================

class SuggestionRequest(BaseModel):
    """走法建议请求模型"""
    fen: str
    difficulty: Difficulty = Difficulty.MEDIUM
    legal_moves: List[str] = Field(default_factory=list)  # 坐标记法，为空时由服务端计算
    color: str = Field(default='b', pattern='^[wb]$')     # 请求建议的一方


class SuggestionResponse(BaseModel):
    """走法建议响应模型"""
    move: Optional[str] = None


# ==================== 建议器 ====================

class MoveSuggester(ABC):
    """走法建议接口"""

    @abstractmethod
    async def suggest_move(self, fen: str, difficulty: Difficulty,
                           legal_moves: Sequence[Move], color: Color) -> Optional[Move]:
        """
        为指定一方建议一步走法

        Args:
            fen: 当前局面的FEN
            difficulty: 难度
            legal_moves: 调用方预先计算的合法走法
            color: 请求建议的一方

        Returns:
            Optional[Move]: 建议的走法，无法给出时返回None
        """


class RandomMoveSuggester(MoveSuggester):
    """从合法走法中均匀随机选择"""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    async def suggest_move(self, fen: str, difficulty: Difficulty,
                           legal_moves: Sequence[Move], color: Color) -> Optional[Move]:
        if not legal_moves:
            return None
        return self._random.choice(sorted(legal_moves, key=Move.to_coordinate_notation))


class HeuristicMoveSuggester(MoveSuggester):
    """
    启发式走法建议

    只看一步：吃子价值、将军奖励、落点是否被攻击以及靠近中心的程度。
    简单难度完全随机，中等难度优先吃最有价值的子，困难难度取评分最高的走法。
    """

    PIECE_VALUES = {
        PieceType.GENERAL: 1000,
        PieceType.ADVISOR: 20,
        PieceType.ELEPHANT: 20,
        PieceType.HORSE: 40,
        PieceType.ROOK: 90,
        PieceType.CANNON: 45,
        PieceType.SOLDIER: 10,
    }

    def __init__(self, rule_engine: Optional[RuleEngine] = None, seed: Optional[int] = None):
        self.rule_engine = rule_engine or RuleEngine()
        self._random = random.Random(seed)

    def capture_value(self, board: ChessBoard, move: Move) -> int:
        captured = board.piece_at(move.to_pos)
        return self.PIECE_VALUES[captured.type] if captured else 0

    def score_move(self, board: ChessBoard, move: Move) -> float:
        """
        评估走法

        Args:
            board: 当前棋盘
            move: 走法

        Returns:
            float: 评分，越高越好
        """
        piece = board.piece_at(move.from_pos)
        if piece is None:
            return float('-inf')

        score = float(self.capture_value(board, move))

        new_board = board.make_move(move)
        if self.rule_engine.is_in_check(new_board, piece.color.opponent):
            score += 50
        if self.rule_engine.is_square_attacked(new_board, move.to_pos, piece.color.opponent):
            score -= self.PIECE_VALUES[piece.type] / 2

        # 位置价值：靠近中心
        center_distance = abs(move.to_pos.y - 4.5) + abs(move.to_pos.x - 4)
        score += max(0.0, 10 - center_distance) / 10
        return score

    def _pick_best(self, moves: Sequence[Move], key) -> Move:
        scored = [(key(move), move) for move in moves]
        best = max(score for score, _ in scored)
        return self._random.choice([move for score, move in scored if score == best])

    async def suggest_move(self, fen: str, difficulty: Difficulty,
                           legal_moves: Sequence[Move], color: Color) -> Optional[Move]:
        if not legal_moves:
            return None
        moves = sorted(legal_moves, key=Move.to_coordinate_notation)

        if difficulty is Difficulty.EASY:
            return self._random.choice(moves)

        # 评分在线程中进行，调用方的超时才能生效
        return await asyncio.to_thread(self._choose, fen, difficulty, moves)

    def _choose(self, fen: str, difficulty: Difficulty, moves: List[Move]) -> Move:
        board, _ = ChessBoard.from_fen(fen)
        if difficulty is Difficulty.MEDIUM:
            return self._pick_best(moves, lambda move: self.capture_value(board, move))
        return self._pick_best(moves, lambda move: self.score_move(board, move))


class RemoteMoveSuggester(MoveSuggester):
    """
    远程走法建议

    通过HTTP调用走法建议服务的 POST /suggest 接口。
    """

    def __init__(self, base_url: str, timeout: float = 10.0,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            base_url: 服务地址
            timeout: 请求超时时间(秒)
            client: 可注入的HTTP客户端，None表示每次请求新建
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._client = client

    async def _post(self, payload: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(f"{self.base_url}/suggest", json=payload, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(f"{self.base_url}/suggest", json=payload)

    async def suggest_move(self, fen: str, difficulty: Difficulty,
                           legal_moves: Sequence[Move], color: Color) -> Optional[Move]:
        endpoint = f"{self.base_url}/suggest"
        request = SuggestionRequest(
            fen=fen,
            difficulty=difficulty,
            legal_moves=[move.to_coordinate_notation() for move in legal_moves],
            color=color.fen_token
        )

        try:
            response = await self._post(request.model_dump(mode='json'))
        except httpx.HTTPError as e:
            raise SuggestionError(endpoint, reason=str(e) or e.__class__.__name__) from e

        if response.status_code != 200:
            raise SuggestionError(endpoint, response.status_code, response.text[:200])

        try:
            result = SuggestionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SuggestionError(endpoint, reason=f"响应格式错误: {e}") from e

        if result.move is None:
            return None
        try:
            move = Move.from_coordinate_notation(result.move)
        except ParseError as e:
            raise SuggestionError(endpoint, reason=str(e)) from e

        logger.debug(f"远程建议走法: {move}")
        return move


def build_suggester(config: SuggesterConfig, rule_engine: Optional[RuleEngine] = None) -> MoveSuggester:
    """
    根据配置创建走法建议器

    Args:
        config: 走法建议服务配置
        rule_engine: 共享的规则引擎

    Returns:
        MoveSuggester: 建议器实例
    """
    seed = config.seed if config.seed >= 0 else None
    if config.backend == 'random':
        return RandomMoveSuggester(seed)
    if config.backend == 'heuristic':
        return HeuristicMoveSuggester(rule_engine, seed)
    if config.backend == 'remote':
        return RemoteMoveSuggester(config.base_url, config.timeout)
    raise ConfigurationError('suggester', f"未知的走法建议后端: {config.backend}")
