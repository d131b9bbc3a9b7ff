"""
游戏接口测试

测试对局会话的走子、AI回合、兜底随机走子和终局判定。
"""

import asyncio
import random
import time

import pytest

from xiangqi_project.src.xiangqi_engine.config import GameConfig
from xiangqi_project.src.xiangqi_engine.inference_interface import (
    Difficulty, GameSession, GameState, HeuristicMoveSuggester, MoveSuggester
)
from xiangqi_project.src.xiangqi_engine.rules_engine import (
    ChessBoard, Color, GameStatus, INITIAL_FEN, Move, Position
)
from xiangqi_project.src.xiangqi_engine.utils.exceptions import (
    ConfigurationError, GameStateError, IllegalMoveError, ParseError, SuggestionError
)


def mv(text):
    return Move.from_coordinate_notation(text)


class StubSuggester(MoveSuggester):
    """返回预设结果的走法建议器"""

    def __init__(self, result=None, error=None, delay=0.0, on_call=None):
        self.result = result
        self.error = error
        self.delay = delay
        self.on_call = on_call
        self.calls = []

    async def suggest_move(self, fen, difficulty, legal_moves, color):
        self.calls.append((fen, difficulty, list(legal_moves), color))
        if self.on_call:
            self.on_call()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


def make_session(suggester=None, fen=None, **config_overrides):
    config = GameConfig(ai_move_delay=0.0, **config_overrides)
    return GameSession(config, suggester, rng=random.Random(0), fen=fen)


class TestGameState:
    """GameState值对象的测试"""

    def test_defaults(self):
        state = GameState(board=ChessBoard.initial())
        assert state.side_to_move is Color.RED
        assert state.status is GameStatus.PLAYING
        assert not state.is_over
        assert state.to_fen() == INITIAL_FEN

    def test_frozen(self):
        state = GameState(board=ChessBoard.initial())
        with pytest.raises(AttributeError):
            state.ply = 3


class TestGameSession:
    """GameSession类的测试"""

    def setup_method(self):
        self.suggester = StubSuggester(result=mv('h7e7'))
        self.session = make_session(self.suggester)

    def test_initial_state(self):
        state = self.session.state
        assert state.to_fen() == INITIAL_FEN
        assert state.side_to_move is Color.RED
        assert state.ply == 0
        assert len(self.session.legal_moves()) == 44
        assert self.session.human_color is Color.RED
        assert self.session.ai_color is Color.BLACK

    def test_reset_with_bad_fen(self):
        with pytest.raises(ParseError):
            self.session.reset("not a fen")

    def test_reset_rejects_invalid_board(self):
        """测试拒绝帅将照面的开局"""
        with pytest.raises(GameStateError):
            self.session.reset("4k4/9/9/9/9/9/9/9/9/4K4 w - - 0 1")

        session = make_session(validate_start_position=False)
        state = session.reset("4k4/9/9/9/9/9/9/9/9/4K4 w - - 0 1")
        assert state.board.piece_count() == 2

    def test_select(self):
        """测试选中棋子"""
        targets = self.session.select(Position(1, 0))
        assert targets == [Position(0, 2), Position(2, 2)]

        assert self.session.select(Position(1, 9)) == []   # 对方棋子
        assert self.session.select(Position(4, 4)) == []   # 空位

    def test_play_move(self):
        """测试人类走子"""
        state = self.session.play_move(mv('b2e2'))

        assert state.side_to_move is Color.BLACK
        assert state.ply == 1
        assert state.plies_since_capture == 1
        assert state.last_move == mv('b2e2')
        assert state.to_fen() == "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/4C2C1/9/RNBAKABNR b - - 0 1"
        assert self.session.state is state

    def test_illegal_move_rejected(self):
        with pytest.raises(IllegalMoveError):
            self.session.play_move(mv('a0a5'))
        assert self.session.state.ply == 0

    def test_move_out_of_turn_rejected(self):
        self.session.play_move(mv('b2e2'))
        with pytest.raises(GameStateError):
            self.session.play_move(mv('h2e2'))

    def test_ai_turn(self):
        """测试AI回合"""
        self.session.play_move(mv('b2e2'))
        fen_before = self.session.state.to_fen()

        state = asyncio.run(self.session.play_ai_turn())

        assert state.last_move == mv('h7e7')
        assert state.side_to_move is Color.RED
        assert state.ply == 2
        assert state.board.piece_count() == 32
        assert self.session.notice is None
        assert not self.session.is_ai_thinking

        fen, difficulty, legal_moves, color = self.suggester.calls[0]
        assert fen == fen_before
        assert difficulty is Difficulty.MEDIUM
        assert color is Color.BLACK
        assert mv('h7e7') in legal_moves

    def test_ai_turn_out_of_turn(self):
        with pytest.raises(GameStateError):
            asyncio.run(self.session.play_ai_turn())

    def test_human_input_refused_while_ai_thinking(self):
        """测试AI思考期间拒绝人类输入"""
        errors = []

        def try_human_move():
            try:
                self.session.play_move(mv('h2e2'))
            except GameStateError as e:
                errors.append(e)

        self.session.suggester = StubSuggester(result=mv('h7e7'), on_call=try_human_move)
        self.session.play_move(mv('b2e2'))
        asyncio.run(self.session.play_ai_turn())

        assert len(errors) == 1
        assert self.session.state.last_move == mv('h7e7')
        assert not self.session.is_ai_thinking

    @pytest.mark.parametrize("suggester", [
        StubSuggester(error=SuggestionError("http://localhost:8000/suggest", 500)),
        StubSuggester(error=RuntimeError("boom")),
        StubSuggester(result=None),
        StubSuggester(result=mv('a9a5')),   # 车被卒挡住，不合法
    ])
    def test_ai_fallback_to_random_move(self, suggester):
        """测试走法建议失败时随机走子"""
        session = make_session(suggester)
        session.play_move(mv('b2e2'))
        board_before = session.state.board

        state = asyncio.run(session.play_ai_turn())

        legal = session.rule_engine.generate_legal_moves(board_before, Color.BLACK)
        assert state.last_move in legal
        assert state.side_to_move is Color.RED
        assert session.notice
        assert not session.is_ai_thinking

    def test_ai_timeout(self):
        """测试走法建议超时"""
        session = make_session(StubSuggester(result=mv('h7e7'), delay=1.0), suggestion_timeout=0.05)
        session.play_move(mv('b2e2'))

        state = asyncio.run(session.play_ai_turn())

        assert state.side_to_move is Color.RED
        assert "超时" in session.notice

    def test_human_plays_black(self):
        """测试人类执黑，AI先走"""
        session = make_session(StubSuggester(result=mv('b2e2')), human_color='b')
        assert session.ai_color is Color.RED

        with pytest.raises(GameStateError):
            session.play_move(mv('h7e7'))

        asyncio.run(session.play_ai_turn())
        state = session.play_move(mv('h7e7'))
        assert state.side_to_move is Color.RED
        assert state.ply == 2

    def test_reset_during_ai_turn_discards_stale_move(self):
        """测试AI思考期间重新开局，旧对局的AI走法被丢弃"""
        session = make_session(StubSuggester(result=mv('h7e7'), delay=0.05))
        session.play_move(mv('b2e2'))

        async def run():
            task = asyncio.create_task(session.play_ai_turn())
            await asyncio.sleep(0.01)
            session.reset()
            return await task

        state = asyncio.run(run())

        assert state.to_fen() == INITIAL_FEN
        assert session.state.to_fen() == INITIAL_FEN
        assert session.state.ply == 0
        assert session.notice is None
        assert not session.is_ai_thinking

        state = session.play_move(mv('b2e2'))
        assert state.ply == 1

    def test_blocking_heuristic_times_out(self):
        """测试启发式评分阻塞时超时仍然生效"""

        class SlowHeuristic(HeuristicMoveSuggester):
            def _choose(self, fen, difficulty, moves):
                time.sleep(0.3)
                return super()._choose(fen, difficulty, moves)

        session = make_session(SlowHeuristic(seed=0), difficulty='Hard', suggestion_timeout=0.05)
        session.play_move(mv('b2e2'))
        board_before = session.state.board

        state = asyncio.run(session.play_ai_turn())

        legal = session.rule_engine.generate_legal_moves(board_before, Color.BLACK)
        assert state.last_move in legal
        assert "超时" in session.notice

    @pytest.mark.parametrize("overrides", [
        {'human_color': 'red'},
        {'difficulty': 'Impossible'},
    ])
    def test_bad_config_rejected(self, overrides):
        """测试对局配置取值错误"""
        with pytest.raises(ConfigurationError) as exc_info:
            GameSession(GameConfig(**overrides))
        assert exc_info.value.error_code == "CONFIG_ERROR"


class TestGameEnd:
    """终局判定的测试"""

    def test_checkmate(self):
        """测试双车将死"""
        session = make_session(fen="4k4/R8/9/9/9/9/9/9/9/1R1K5 w - - 0 1")
        assert session.state.status is GameStatus.PLAYING

        state = session.play_move(mv('b0b9'))

        assert state.status is GameStatus.CHECKMATE
        assert state.winner is Color.RED
        assert state.is_over
        assert session.legal_moves() == set()
        assert session.select(Position(4, 9)) == []
        assert "你赢了" in session.status_text()

        with pytest.raises(GameStateError):
            session.play_move(mv('a8a7'))
        with pytest.raises(GameStateError):
            asyncio.run(session.play_ai_turn())

    def test_stalemate_loses(self):
        """测试困毙判负"""
        session = make_session(fen="4k4/R8/9/9/9/9/9/9/9/3K2R2 w - - 0 1")
        state = session.play_move(mv('g0f0'))

        assert state.status is GameStatus.STALEMATE
        assert state.winner is Color.RED

    def test_general_capture_ends_game(self):
        """测试吃掉帅/将立即结束对局"""
        session = make_session(fen="4k4/9/9/9/4R4/9/9/9/9/3K5 w - - 0 1")
        state = session.play_move(mv('e5e9'))

        assert state.status is GameStatus.CHECKMATE
        assert state.winner is Color.RED
        assert state.board.find_general(Color.BLACK) is None

    def test_no_capture_draw(self):
        """测试长时间无吃子判和"""
        session = make_session(StubSuggester(result=mv('h7e7')), no_capture_draw_plies=2)
        session.play_move(mv('b2e2'))
        state = asyncio.run(session.play_ai_turn())

        assert state.status is GameStatus.DRAW
        assert state.winner is None
        assert "和棋" in session.status_text()

    def test_capture_resets_counter(self):
        session = make_session(no_capture_draw_plies=2)
        state = session.play_move(mv('b2b9'))
        assert state.plies_since_capture == 0
        assert state.status is GameStatus.PLAYING

    def test_max_plies_draw(self):
        session = make_session(max_plies=1)
        state = session.play_move(mv('b2e2'))
        assert state.status is GameStatus.DRAW
