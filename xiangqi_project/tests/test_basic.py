"""
基础测试模块

测试项目的基本功能、导入和命令行入口。
"""

import pytest
import sys
from pathlib import Path

from click.testing import CliRunner

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))


def test_project_import():
    """测试项目主模块是否可以正常导入"""
    try:
        import xiangqi_project
        assert xiangqi_project.__version__ == "0.1.0"
        assert xiangqi_project.__author__ == "Xiangqi Engine Team"
    except ImportError as e:
        pytest.fail(f"无法导入xiangqi_project模块: {e}")


def test_submodules_import():
    """测试子模块是否可以正常导入"""
    try:
        from xiangqi_project.src import xiangqi_engine
        from xiangqi_project.src.xiangqi_engine import rules_engine, inference_interface, config, utils

        assert xiangqi_engine.__version__ == "0.1.0"
        assert hasattr(rules_engine, 'RuleEngine')
        assert hasattr(inference_interface, 'GameSession')
    except ImportError as e:
        pytest.fail(f"无法导入子模块: {e}")


def test_main_entry_point():
    """测试主入口文件是否存在"""
    assert (project_root / "xiangqi_project" / "main.py").exists()


class TestCommandLine:
    """命令行接口的测试"""

    @pytest.fixture(autouse=True)
    def setup_cli(self, tmp_path, monkeypatch):
        from xiangqi_project import main

        # 日志处理器会持有CliRunner的临时输出流
        monkeypatch.setattr(main, 'setup_logger', lambda **kwargs: None)
        self.cli = main.cli
        self.runner = CliRunner()
        self.base_args = ['--config-dir', str(tmp_path / 'configs')]

    def test_info(self):
        result = self.runner.invoke(self.cli, self.base_args + ['info'])
        assert result.exit_code == 0
        assert "Xiangqi" in result.output

    def test_moves(self):
        result = self.runner.invoke(self.cli, self.base_args + ['moves', '--from', 'b0'])
        assert result.exit_code == 0
        assert "b0a2" in result.output
        assert "b0c2" in result.output
        assert "playing" in result.output

    def test_moves_bad_square(self):
        result = self.runner.invoke(self.cli, self.base_args + ['moves', '--from', 'z0'])
        assert result.exit_code != 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
