"""
配置管理器

负责加载、保存和管理各种配置。
"""

import copy
import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Type, TypeVar

import yaml

from .game_config import (
    GameConfig, SuggesterConfig, SystemConfig,
    DEFAULT_GAME_CONFIG, DEFAULT_SUGGESTER_CONFIG, DEFAULT_SYSTEM_CONFIG
)
from ..utils.exceptions import ConfigurationError

T = TypeVar('T')

logger = logging.getLogger(__name__)

VALID_DIFFICULTIES = ('Easy', 'Medium', 'Hard')
VALID_BACKENDS = ('random', 'heuristic', 'remote')


class ConfigManager:
    """
    配置管理器

    负责加载、保存和管理系统的各种配置。
    """

    def __init__(self, config_dir: str = "xiangqi_project/configs/xiangqi_engine"):
        """
        初始化配置管理器

        Args:
            config_dir: 配置文件目录
        """
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        # 配置文件路径
        self.config_files = {
            'game': self.config_dir / 'game_config.yaml',
            'suggester': self.config_dir / 'suggester_config.yaml',
            'system': self.config_dir / 'system_config.yaml'
        }

        # 默认配置
        self.default_configs = {
            'game': DEFAULT_GAME_CONFIG,
            'suggester': DEFAULT_SUGGESTER_CONFIG,
            'system': DEFAULT_SYSTEM_CONFIG
        }

        # 配置类型映射
        self.config_types = {
            'game': GameConfig,
            'suggester': SuggesterConfig,
            'system': SystemConfig
        }

        self._initialize_default_configs()

    def _initialize_default_configs(self):
        """初始化默认配置文件"""
        for config_name, config_obj in self.default_configs.items():
            config_file = self.config_files[config_name]
            if not config_file.exists():
                self.save_config(config_name, config_obj)
                logger.info(f"创建默认配置文件: {config_file}")

    def _check_name(self, config_name: str):
        if config_name not in self.config_types:
            raise ConfigurationError(config_name, f"未知的配置名称，可选: {', '.join(self.config_types)}")

    def load_config(self, config_name: str, config_class: Type[T] = None) -> T:
        """
        加载配置

        文件不存在或无法读取时返回默认配置的副本。

        Args:
            config_name: 配置名称
            config_class: 配置类，None表示按名称推断

        Returns:
            配置对象
        """
        self._check_name(config_name)
        config_class = config_class or self.config_types[config_name]
        config_file = self.config_files[config_name]

        if not config_file.exists():
            logger.warning(f"配置文件不存在: {config_file}，使用默认配置")
            return copy.deepcopy(self.default_configs[config_name])

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.suffix == '.yaml':
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)

            config = self._dict_to_dataclass(data or {}, config_class)
            logger.debug(f"成功加载配置: {config_file}")
            return config

        except (OSError, yaml.YAMLError, json.JSONDecodeError, TypeError, AttributeError) as e:
            logger.error(f"加载配置文件失败: {config_file}, 错误: {e}")
            return copy.deepcopy(self.default_configs[config_name])

    def save_config(self, config_name: str, config_obj: Any):
        """
        保存配置

        Args:
            config_name: 配置名称
            config_obj: 配置对象
        """
        self._check_name(config_name)
        config_file = self.config_files[config_name]
        data = asdict(config_obj)

        with open(config_file, 'w', encoding='utf-8') as f:
            if config_file.suffix == '.yaml':
                yaml.dump(data, f, default_flow_style=False,
                          allow_unicode=True, indent=2)
            else:
                json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(f"成功保存配置: {config_file}")

    def get_game_config(self) -> GameConfig:
        """获取对局配置"""
        return self.load_config('game', GameConfig)

    def get_suggester_config(self) -> SuggesterConfig:
        """获取走法建议服务配置"""
        return self.load_config('suggester', SuggesterConfig)

    def get_system_config(self) -> SystemConfig:
        """获取系统配置"""
        return self.load_config('system', SystemConfig)

    def update_config(self, config_name: str, **kwargs):
        """
        更新配置

        Args:
            config_name: 配置名称
            **kwargs: 要更新的配置项
        """
        config = self.load_config(config_name)

        for key, value in kwargs.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"配置项不存在: {key}")

        self.save_config(config_name, config)
        return config

    def reset_config(self, config_name: str):
        """重置配置为默认值"""
        self._check_name(config_name)
        self.save_config(config_name, self.default_configs[config_name])
        logger.info(f"配置已重置为默认值: {config_name}")

    def validate_config(self, config_name: str) -> bool:
        """
        验证配置的有效性

        Args:
            config_name: 配置名称

        Returns:
            bool: 配置是否有效
        """
        config = self.load_config(config_name)

        if config_name == 'game':
            return (config.human_color in ('w', 'b') and
                    config.difficulty in VALID_DIFFICULTIES and
                    config.ai_move_delay >= 0 and
                    config.suggestion_timeout > 0 and
                    config.no_capture_draw_plies > 0 and
                    config.max_plies > 0)
        elif config_name == 'suggester':
            return config.backend in VALID_BACKENDS and config.timeout > 0
        elif config_name == 'system':
            return 0 < config.api_port < 65536

        return True

    def get_all_configs(self) -> Dict[str, Any]:
        """获取所有配置"""
        return {name: self.load_config(name) for name in self.config_types}

    def _dict_to_dataclass(self, data: Dict[str, Any], dataclass_type: Type[T]) -> T:
        """
        将字典转换为数据类对象，忽略未知字段

        Args:
            data: 字典数据
            dataclass_type: 数据类类型

        Returns:
            数据类对象
        """
        field_names = {f.name for f in fields(dataclass_type)}
        filtered_data = {k: v for k, v in data.items() if k in field_names}
        return dataclass_type(**filtered_data)
