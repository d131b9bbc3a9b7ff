"""
推理接口模块

包含走法建议服务、对局会话和API服务器。
"""

from .move_suggester import (
    Difficulty, MoveSuggester, RandomMoveSuggester, HeuristicMoveSuggester,
    RemoteMoveSuggester, SuggestionRequest, SuggestionResponse, build_suggester
)
from .game_interface import GameState, GameSession
from .api_server import SuggestionServer, create_api_server, create_app

__all__ = [
    # 走法建议
    'Difficulty',
    'MoveSuggester',
    'RandomMoveSuggester',
    'HeuristicMoveSuggester',
    'RemoteMoveSuggester',
    'SuggestionRequest',
    'SuggestionResponse',
    'build_suggester',

    # 对局会话
    'GameState',
    'GameSession',

    # API服务器
    'SuggestionServer',
    'create_api_server',
    'create_app'
]
