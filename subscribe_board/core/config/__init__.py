"""
向外暴露 load_all_configs, 外部文件统一使用 load_all_configs 加载环境变量和配置变量
使用 Env_config, Config 规范化管理
"""
from typing import Tuple

from ._get_value import Miss_key_exception, parse_bool
from .load_config import CaptionBudgets, Config, DashboardConfig, load_config
from .load_env_config import Env_config, load_env_config, parse_env_config


def load_all_configs(dotenv_path: str = ".env", config_path: str | None = None) -> Tuple[Env_config, Config]:
    """
    获取 env, config 两个配置对象

    Returns:
        env_config: 环境变量配置对象
        config: 看板布局配置对象
    """
    env_config: Env_config = load_env_config(dotenv_path)
    config: Config = load_config(config_path)
    return env_config, config


__all__ = [
    "CaptionBudgets",
    "Config",
    "DashboardConfig",
    "Env_config",
    "Miss_key_exception",
    "load_all_configs",
    "load_config",
    "load_env_config",
    "parse_bool",
    "parse_env_config",
]
