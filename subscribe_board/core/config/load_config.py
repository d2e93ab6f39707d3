import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from ._get_value import get_value_from_dict

# Telegram caption limit; a budget below the minimum cannot hold the header lines
TG_CAPTION_LIMIT = 1024
MIN_CAPTION_BUDGET = 100


@dataclass(frozen=True)
class CaptionBudgets:
    full: int = 900
    aggressive: int = 700
    minimal: int = 420

@dataclass(frozen=True)
class DashboardConfig:
    caption_budgets: CaptionBudgets = field(default_factory=CaptionBudgets)
    text_hard_limit: int = 3500
    pending_limit_per_day: int = 200

@dataclass(frozen=True)
class Config:
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)

def read_row_config(config_path: str) -> Dict[str, Any]:
    with open(config_path, "r", encoding="utf-8") as f:
        row_config = yaml.safe_load(f)
    return row_config or {}

def validate_caption_budgets(budgets: CaptionBudgets) -> CaptionBudgets:
    """
    检查 caption 预算: 每档在 [MIN_CAPTION_BUDGET, TG_CAPTION_LIMIT] 之间, 且 full >= aggressive >= minimal

    Raises:
        ValueError: 预算越界或顺序错误
    """
    for name in ("full", "aggressive", "minimal"):
        value = getattr(budgets, name)
        if not MIN_CAPTION_BUDGET <= value <= TG_CAPTION_LIMIT:
            raise ValueError(
                f"caption_budgets.{name}={value} outside [{MIN_CAPTION_BUDGET}, {TG_CAPTION_LIMIT}]"
            )
    if not budgets.full >= budgets.aggressive >= budgets.minimal:
        raise ValueError("caption_budgets must satisfy full >= aggressive >= minimal")
    return budgets

def parse_config(row_config: Dict[str, Any]) -> Config:
    """
    将 yaml 字典解析为 Config, 没有 dashboard 段时使用默认值
    """
    if "dashboard" not in row_config:
        return Config()

    dashboard = get_value_from_dict(row_config, "dashboard")
    budgets = get_value_from_dict(dashboard, "caption_budgets")

    return Config(
        dashboard=DashboardConfig(
            caption_budgets=validate_caption_budgets(CaptionBudgets(
                full=int(get_value_from_dict(budgets, "full")),
                aggressive=int(get_value_from_dict(budgets, "aggressive")),
                minimal=int(get_value_from_dict(budgets, "minimal")),
            )),
            text_hard_limit=int(get_value_from_dict(dashboard, "text_hard_limit")),
            pending_limit_per_day=int(get_value_from_dict(dashboard, "pending_limit_per_day")),
        )
    )

def load_config(config_path: str | None = None) -> Config:
    config_path = config_path or os.getenv("CONFIG_PATH", "config.yaml")
    if not Path(config_path).exists():
        return Config()
    return parse_config(read_row_config(config_path))
