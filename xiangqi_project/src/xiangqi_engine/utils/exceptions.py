"""
异常定义

定义象棋规则引擎及对局驱动的各种异常类型。
"""

from typing import Optional


class XiangqiError(Exception):
    """
    象棋引擎基础异常

    所有象棋相关异常的基类。
    """

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__

    def __str__(self):
        return f"[{self.error_code}] {self.message}"


class ParseError(XiangqiError):
    """
    解析异常

    当FEN字符串或走法记法格式错误时抛出，token指出出错的片段。
    """

    def __init__(self, token: str, reason: str = ""):
        message = f"无法解析: {token!r}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, "PARSE_ERROR")
        self.token = token
        self.reason = reason


class IllegalMoveError(XiangqiError):
    """
    非法走法异常

    当尝试执行非法走法时抛出。
    """

    def __init__(self, move_str: str, reason: str = ""):
        message = f"非法走法: {move_str}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, "ILLEGAL_MOVE")
        self.move_str = move_str
        self.reason = reason


class GameStateError(XiangqiError):
    """
    游戏状态异常

    当游戏状态无效或调用时机不对时抛出。
    """

    def __init__(self, state_description: str, reason: str = ""):
        message = f"游戏状态错误: {state_description}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, "GAME_STATE_ERROR")
        self.state_description = state_description
        self.reason = reason


class SuggestionError(XiangqiError):
    """
    走法建议服务异常

    当远程走法建议服务调用失败时抛出。
    """

    def __init__(self, endpoint: str, status_code: Optional[int] = None, reason: str = ""):
        message = f"走法建议服务错误 - {endpoint}"
        if status_code:
            message += f" (状态码: {status_code})"
        if reason:
            message += f": {reason}"
        super().__init__(message, "SUGGESTION_ERROR")
        self.endpoint = endpoint
        self.status_code = status_code
        self.reason = reason


class ConfigurationError(XiangqiError):
    """
    配置错误异常

    当配置参数无效时抛出。
    """

    def __init__(self, config_name: str, reason: str = ""):
        message = f"配置错误 - {config_name}"
        if reason:
            message += f": {reason}"
        super().__init__(message, "CONFIG_ERROR")
        self.config_name = config_name
        self.reason = reason
