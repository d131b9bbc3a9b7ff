#!/usr/bin/env python3
"""
Xiangqi 主入口文件

提供统一的命令行接口：查看走法、终端对弈和启动走法建议服务。
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from xiangqi_project import __version__, __description__
from xiangqi_project.src.xiangqi_engine.config import ConfigManager
from xiangqi_project.src.xiangqi_engine.inference_interface import (
    GameSession, build_suggester, create_api_server
)
from xiangqi_project.src.xiangqi_engine.rules_engine import (
    ChessBoard, INITIAL_FEN, Move, Position, RuleEngine
)
from xiangqi_project.src.xiangqi_engine.utils import XiangqiError, setup_logger

console = Console()


def print_banner():
    """打印项目横幅"""
    banner_text = Text()
    banner_text.append("♜ Xiangqi ♜\n", style="bold red")
    banner_text.append(f"版本: {__version__}\n", style="green")
    banner_text.append(__description__, style="white")

    panel = Panel(
        banner_text,
        title="中国象棋规则引擎",
        title_align="center",
        border_style="red",
        padding=(1, 2)
    )
    console.print(panel)


@click.group()
@click.version_option(version=__version__, prog_name="Xiangqi")
@click.option('--debug', is_flag=True, help='启用调试模式')
@click.option('--config-dir', type=click.Path(file_okay=False),
              default='xiangqi_project/configs/xiangqi_engine', help='配置目录')
@click.pass_context
def cli(ctx: click.Context, debug: bool, config_dir: str):
    """中国象棋规则引擎 - 走法生成、终局判定和走法建议服务"""
    manager = ConfigManager(config_dir)
    system_config = manager.get_system_config()

    setup_logger(
        level='DEBUG' if debug else system_config.log_level,
        log_file=system_config.log_file or None,
        log_dir=system_config.log_dir,
        max_size=system_config.log_max_size,
        backup_count=system_config.log_backup_count
    )

    if debug:
        console.print("[yellow]调试模式已启用[/yellow]")

    ctx.obj = manager


@cli.command()
def info():
    """显示系统信息"""
    print_banner()

    status_text = Text()
    status_text.append("📊 功能\n", style="bold yellow")
    status_text.append("• 规则引擎: ", style="white")
    status_text.append("走法生成、将军、将死与困毙判定\n", style="green")
    status_text.append("• 对局驱动: ", style="white")
    status_text.append("人机对弈，AI超时自动随机走子\n", style="green")
    status_text.append("• 走法建议服务: ", style="white")
    status_text.append("random / heuristic / remote\n", style="green")

    console.print(Panel(status_text, title="系统状态", border_style="yellow"))


@cli.command()
@click.option('--fen', default=INITIAL_FEN, help='局面FEN')
@click.option('--from', 'from_square', default=None, help='只显示该位置棋子的走法，如 b2')
def moves(fen: str, from_square: Optional[str]):
    """列出局面的合法走法"""
    rule_engine = RuleEngine()
    board, side = ChessBoard.from_fen(fen)

    if from_square:
        try:
            pos = Position.from_notation(from_square)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint='--from')
        legal = rule_engine.legal_moves_from(board, side, pos)
    else:
        legal = rule_engine.generate_legal_moves(board, side)

    console.print(board.to_visual_string())

    table = Table(title=f"{side.display_name}合法走法 ({len(legal)})")
    table.add_column("走法", style="cyan")
    table.add_column("棋子")
    table.add_column("吃子", style="red")
    for move in sorted(legal, key=Move.to_coordinate_notation):
        piece = board.piece_at(move.from_pos)
        captured = board.piece_at(move.to_pos)
        table.add_row(move.to_coordinate_notation(), piece.name, captured.name if captured else "")
    console.print(table)

    status = rule_engine.get_game_status(board, side)
    in_check = rule_engine.is_in_check(board, side)
    console.print(f"状态: [bold]{status.value}[/bold]" + (" [red](被将军)[/red]" if in_check else ""))


@cli.command()
@click.option('--fen', default=None, help='开局局面FEN')
@click.option('--difficulty', type=click.Choice(['Easy', 'Medium', 'Hard']), default=None, help='AI难度')
@click.option('--color', type=click.Choice(['w', 'b']), default=None, help='人类执子方')
@click.option('--backend', type=click.Choice(['random', 'heuristic', 'remote']), default=None,
              help='走法建议后端')
@click.pass_obj
def play(manager: ConfigManager, fen: Optional[str], difficulty: Optional[str],
         color: Optional[str], backend: Optional[str]):
    """在终端中与AI对弈"""
    game_config = manager.get_game_config()
    suggester_config = manager.get_suggester_config()
    if difficulty:
        game_config.difficulty = difficulty
    if color:
        game_config.human_color = color
    if backend:
        suggester_config.backend = backend

    rule_engine = RuleEngine()
    session = GameSession(game_config, build_suggester(suggester_config, rule_engine), rule_engine, fen=fen)

    console.print("[green]输入坐标走法 (如 b2e2)，输入 moves 查看合法走法，quit 退出[/green]")

    while not session.state.is_over:
        console.print(session.state.board.to_visual_string())

        if session.state.side_to_move is session.ai_color:
            with console.status("AI思考中..."):
                asyncio.run(session.play_ai_turn())
            console.print(f"[magenta]AI走法: {session.state.last_move}[/magenta]")
            if session.notice:
                console.print(f"[yellow]{session.notice}[/yellow]")
            continue

        console.print(session.status_text())
        text = click.prompt("你的走法").strip()
        if text == 'quit':
            return
        if text == 'moves':
            legal = sorted(move.to_coordinate_notation() for move in session.legal_moves())
            console.print(" ".join(legal))
            continue

        try:
            session.play_move(Move.from_coordinate_notation(text))
        except XiangqiError as e:
            console.print(f"[red]{e}[/red]")

    console.print(session.state.board.to_visual_string())
    console.print(Panel(session.status_text(), title="对局结束", border_style="green"))


@cli.command()
@click.option('--host', default=None, help='服务器主机地址')
@click.option('--port', type=int, default=None, help='服务器端口')
@click.pass_obj
def serve(manager: ConfigManager, host: Optional[str], port: Optional[int]):
    """启动走法建议API服务"""
    system_config = manager.get_system_config()
    suggester_config = manager.get_suggester_config()
    if suggester_config.backend == 'remote':
        # 服务自身不能再转发给远程服务
        suggester_config.backend = 'heuristic'

    rule_engine = RuleEngine()
    server = create_api_server(build_suggester(suggester_config, rule_engine), rule_engine)

    host = host or system_config.api_host
    port = port or system_config.api_port
    console.print(f"[green]走法建议服务将在 {host}:{port} 启动[/green]")
    server.run(host=host, port=port, log_level=system_config.log_level.lower())


def main():
    """主入口函数"""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]程序被用户中断[/yellow]")
        sys.exit(0)
    except XiangqiError as e:
        console.print(f"[red]发生错误: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
