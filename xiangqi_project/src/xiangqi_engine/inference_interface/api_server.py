"""
走法建议API服务器

以HTTP接口对外提供走法建议，RemoteMoveSuggester 即为其客户端。
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from .move_suggester import (
    HeuristicMoveSuggester, MoveSuggester, SuggestionRequest, SuggestionResponse
)
from ..rules_engine import ChessBoard, Color, Move, RuleEngine
from ..utils.exceptions import ParseError, XiangqiError

API_VERSION = "0.1.0"


# ==================== 数据模型 ====================

class APIResponse(BaseModel):
    """API响应基础模型"""
    success: bool = True
    message: str = ""
    data: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ErrorResponse(BaseModel):
    """错误响应模型"""
    success: bool = False
    error_code: str
    error_message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=datetime.now)


# ==================== API服务器类 ====================

class SuggestionServer:
    """走法建议API服务器"""

    def __init__(self, suggester: Optional[MoveSuggester] = None,
                 rule_engine: Optional[RuleEngine] = None):
        """
        初始化API服务器

        Args:
            suggester: 实际给出建议的走法建议器，None表示启发式建议器
            rule_engine: 规则引擎
        """
        self.logger = logging.getLogger(__name__)

        self.rule_engine = rule_engine or RuleEngine()
        self.suggester = suggester or HeuristicMoveSuggester(self.rule_engine)

        self.app = self._create_app()

        self.logger.info(f"API服务器初始化完成，建议器: {type(self.suggester).__name__}")

    def _create_app(self) -> FastAPI:
        """创建FastAPI应用"""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self.logger.info("API服务器启动")
            yield
            self.logger.info("API服务器关闭")

        app = FastAPI(
            title="象棋走法建议API",
            description="中国象棋走法建议服务",
            version=API_VERSION,
            lifespan=lifespan
        )

        self._add_routes(app)
        self._add_exception_handlers(app)

        return app

    def _add_routes(self, app: FastAPI):
        """添加API路由"""

        @app.get("/health", response_model=APIResponse, tags=["健康检查"])
        async def health_check():
            """健康检查接口"""
            return APIResponse(
                message="服务正常运行",
                data={
                    "status": "healthy",
                    "suggester": type(self.suggester).__name__,
                    "version": API_VERSION
                }
            )

        @app.post("/suggest", response_model=SuggestionResponse, tags=["走法建议"])
        async def suggest(request: SuggestionRequest):
            """为指定一方建议一步走法"""
            board, _ = ChessBoard.from_fen(request.fen)
            color = Color.from_fen_token(request.color)

            if request.legal_moves:
                legal_moves = {Move.from_coordinate_notation(text) for text in request.legal_moves}
            else:
                legal_moves = await asyncio.to_thread(self.rule_engine.generate_legal_moves, board, color)

            if not legal_moves:
                return SuggestionResponse(move=None)

            ordered = sorted(legal_moves, key=Move.to_coordinate_notation)
            move = await self.suggester.suggest_move(request.fen, request.difficulty, ordered, color)

            if move is not None and move not in legal_moves:
                self.logger.warning(f"建议器返回了不在合法集合中的走法: {move}")
                move = None

            return SuggestionResponse(move=move.to_coordinate_notation() if move else None)

    def _add_exception_handlers(self, app: FastAPI):
        """添加异常处理器"""

        @app.exception_handler(ParseError)
        async def parse_error_handler(request: Request, exc: ParseError):
            return JSONResponse(
                status_code=422,
                content=ErrorResponse(
                    error_code=exc.error_code,
                    error_message=str(exc),
                    details={"token": exc.token, "reason": exc.reason}
                ).model_dump(mode='json')
            )

        @app.exception_handler(XiangqiError)
        async def xiangqi_error_handler(request: Request, exc: XiangqiError):
            self.logger.error(f"请求处理失败: {exc}")
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=ErrorResponse(
                    error_code=exc.error_code,
                    error_message=str(exc)
                ).model_dump(mode='json')
            )

    def run(self, host: str = "localhost", port: int = 8000, **kwargs):
        """运行API服务器"""
        uvicorn.run(self.app, host=host, port=port, **kwargs)


# ==================== 工厂函数 ====================

def create_api_server(suggester: Optional[MoveSuggester] = None,
                      rule_engine: Optional[RuleEngine] = None) -> SuggestionServer:
    """创建API服务器实例"""
    return SuggestionServer(suggester=suggester, rule_engine=rule_engine)


def create_app(suggester: Optional[MoveSuggester] = None) -> FastAPI:
    """创建FastAPI应用"""
    return create_api_server(suggester).app
