"""
配置数据结构

定义对局、走法建议服务和系统配置类及默认参数。
"""

from dataclasses import dataclass


@dataclass
class GameConfig:
    """对局配置"""
    human_color: str = 'w'              # 人类执子方 ('w' 红方, 'b' 黑方)
    difficulty: str = 'Medium'          # AI难度 ('Easy', 'Medium', 'Hard')

    # AI回合
    ai_move_delay: float = 0.5          # 请求走法建议前的人为延迟(秒)
    suggestion_timeout: float = 10.0    # 走法建议超时时间(秒)

    # 游戏规则
    validate_start_position: bool = True  # 是否校验开局局面
    no_capture_draw_plies: int = 120    # 连续无吃子步数达到后判和 (60回合)
    max_plies: int = 300                # 最大步数，达到后判和


@dataclass
class SuggesterConfig:
    """走法建议服务配置"""
    backend: str = 'heuristic'          # 'random', 'heuristic', 'remote'
    base_url: str = 'http://localhost:8000'  # 远程服务地址
    timeout: float = 10.0               # HTTP请求超时时间(秒)
    seed: int = -1                      # 随机种子，-1表示不固定


@dataclass
class SystemConfig:
    """系统配置"""
    # 日志配置
    log_level: str = 'INFO'             # 日志级别
    log_file: str = ''                  # 日志文件，空表示只输出到控制台
    log_dir: str = 'logs'               # 日志目录
    log_max_size: int = 10              # 日志文件最大大小(MB)
    log_backup_count: int = 5           # 日志备份数量

    # 走法建议服务
    api_host: str = 'localhost'         # 服务主机
    api_port: int = 8000                # 服务端口


# 默认配置实例
DEFAULT_GAME_CONFIG = GameConfig()
DEFAULT_SUGGESTER_CONFIG = SuggesterConfig()
DEFAULT_SYSTEM_CONFIG = SystemConfig()
