"""
走法建议服务测试

测试随机、启发式和远程走法建议器。
"""

import asyncio
import json
import time

import httpx
import pytest
from pydantic import ValidationError

from xiangqi_project.src.xiangqi_engine.config import SuggesterConfig
from xiangqi_project.src.xiangqi_engine.inference_interface import (
    Difficulty, HeuristicMoveSuggester, RandomMoveSuggester, RemoteMoveSuggester,
    SuggestionRequest, build_suggester, create_app
)
from xiangqi_project.src.xiangqi_engine.rules_engine import (
    ChessBoard, Color, INITIAL_FEN, Move, RuleEngine
)
from xiangqi_project.src.xiangqi_engine.utils.exceptions import ConfigurationError, SuggestionError


def mv(text):
    return Move.from_coordinate_notation(text)


# 红车可以白吃黑车
FREE_ROOK_FEN = "5k3/9/r8/9/9/9/9/9/9/R2K5 w - - 0 1"


class TestLocalSuggesters:
    """本地走法建议器的测试"""

    def setup_method(self):
        self.rule_engine = RuleEngine()
        self.board, _ = ChessBoard.from_fen(INITIAL_FEN)
        self.legal_moves = sorted(
            self.rule_engine.generate_legal_moves(self.board, Color.RED),
            key=Move.to_coordinate_notation
        )

    def suggest(self, suggester, difficulty, fen=INITIAL_FEN, legal_moves=None):
        legal_moves = self.legal_moves if legal_moves is None else legal_moves
        return asyncio.run(suggester.suggest_move(fen, difficulty, legal_moves, Color.RED))

    def test_random_suggester_is_seedable(self):
        first = self.suggest(RandomMoveSuggester(seed=7), Difficulty.MEDIUM)
        second = self.suggest(RandomMoveSuggester(seed=7), Difficulty.MEDIUM)
        assert first == second
        assert first in self.legal_moves

    def test_no_legal_moves(self):
        assert self.suggest(RandomMoveSuggester(), Difficulty.EASY, legal_moves=[]) is None
        assert self.suggest(HeuristicMoveSuggester(), Difficulty.HARD, legal_moves=[]) is None

    def test_heuristic_easy(self):
        move = self.suggest(HeuristicMoveSuggester(seed=1), Difficulty.EASY)
        assert move in self.legal_moves

    def test_heuristic_medium_prefers_capture(self):
        """测试中等难度优先吃子"""
        move = self.suggest(HeuristicMoveSuggester(seed=1), Difficulty.MEDIUM)
        assert move in {mv('b2b9'), mv('h2h9')}

    def test_heuristic_hard_takes_free_rook(self):
        board, _ = ChessBoard.from_fen(FREE_ROOK_FEN)
        legal_moves = sorted(self.rule_engine.generate_legal_moves(board, Color.RED),
                             key=Move.to_coordinate_notation)
        assert mv('a0a7') in legal_moves

        suggester = HeuristicMoveSuggester(self.rule_engine, seed=1)
        assert self.suggest(suggester, Difficulty.HARD, FREE_ROOK_FEN, legal_moves) == mv('a0a7')
        assert self.suggest(suggester, Difficulty.MEDIUM, FREE_ROOK_FEN, legal_moves) == mv('a0a7')

    def test_score_move(self):
        board, _ = ChessBoard.from_fen(FREE_ROOK_FEN)
        suggester = HeuristicMoveSuggester(self.rule_engine)
        assert suggester.capture_value(board, mv('a0a7')) == 90
        assert suggester.score_move(board, mv('a0a7')) > suggester.score_move(board, mv('a0a6'))

    def test_heuristic_scoring_does_not_block_event_loop(self):
        """测试评分耗时较长时调用方的超时仍能生效"""
        suggester = HeuristicMoveSuggester(self.rule_engine, seed=1)
        score_move = suggester.score_move

        def slow_score(board, move):
            time.sleep(0.01)
            return score_move(board, move)

        suggester.score_move = slow_score

        async def run():
            return await asyncio.wait_for(
                suggester.suggest_move(INITIAL_FEN, Difficulty.HARD, self.legal_moves, Color.RED),
                timeout=0.05
            )

        with pytest.raises(asyncio.TimeoutError):
            asyncio.run(run())


class TestRemoteSuggester:
    """远程走法建议器的测试"""

    def setup_method(self):
        self.legal_moves = [mv('h7e7'), mv('b7e7')]
        self.requests = []

    def run_remote(self, handler):
        async def run():
            transport = httpx.MockTransport(handler)
            async with httpx.AsyncClient(transport=transport) as client:
                suggester = RemoteMoveSuggester("http://engine.test/", timeout=1.0, client=client)
                return await suggester.suggest_move(INITIAL_FEN, Difficulty.HARD, self.legal_moves, Color.BLACK)
        return asyncio.run(run())

    def test_successful_request(self):
        """测试请求格式和响应解析"""
        def handler(request):
            self.requests.append(request)
            return httpx.Response(200, json={"move": "h7e7"})

        assert self.run_remote(handler) == mv('h7e7')

        request = self.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://engine.test/suggest"
        payload = json.loads(request.content)
        assert payload == {
            "fen": INITIAL_FEN,
            "difficulty": "Hard",
            "legal_moves": ["h7e7", "b7e7"],
            "color": "b",
        }

    def test_null_move(self):
        assert self.run_remote(lambda request: httpx.Response(200, json={"move": None})) is None

    def test_server_error(self):
        with pytest.raises(SuggestionError) as exc_info:
            self.run_remote(lambda request: httpx.Response(500, text="internal error"))
        assert exc_info.value.status_code == 500

    def test_bad_payload(self):
        with pytest.raises(SuggestionError):
            self.run_remote(lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(SuggestionError):
            self.run_remote(lambda request: httpx.Response(200, json={"move": "zz99"}))

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SuggestionError):
            self.run_remote(handler)

    def test_against_local_api_server(self):
        """测试客户端与API服务器配合"""
        app = create_app(RandomMoveSuggester(seed=3))
        rule_engine = RuleEngine()
        board, _ = ChessBoard.from_fen(INITIAL_FEN)
        legal_moves = sorted(rule_engine.generate_legal_moves(board, Color.RED),
                             key=Move.to_coordinate_notation)

        async def run():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport) as client:
                suggester = RemoteMoveSuggester("http://testserver", client=client)
                return await suggester.suggest_move(INITIAL_FEN, Difficulty.EASY, legal_moves, Color.RED)

        assert asyncio.run(run()) in legal_moves


class TestSuggestionModels:
    """请求模型的测试"""

    def test_request_defaults(self):
        request = SuggestionRequest(fen=INITIAL_FEN)
        assert request.difficulty is Difficulty.MEDIUM
        assert request.legal_moves == []
        assert request.color == 'b'

    def test_request_rejects_bad_color(self):
        with pytest.raises(ValidationError):
            SuggestionRequest(fen=INITIAL_FEN, color='red')


class TestBuildSuggester:
    """根据配置创建建议器的测试"""

    def test_backends(self):
        assert isinstance(build_suggester(SuggesterConfig(backend='random')), RandomMoveSuggester)
        assert isinstance(build_suggester(SuggesterConfig(backend='heuristic', seed=5)), HeuristicMoveSuggester)

        remote = build_suggester(SuggesterConfig(backend='remote', base_url='http://example.test:9000/'))
        assert isinstance(remote, RemoteMoveSuggester)
        assert remote.base_url == 'http://example.test:9000'

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            build_suggester(SuggesterConfig(backend='neural'))
