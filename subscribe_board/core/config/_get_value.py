from typing import Any, Mapping, Optional


class Miss_key_exception(Exception):
    """
    字典缺少键的自定义异常
    """
    def __init__(self, key: str):
        self.key = key
        self.message = f"Key '{key}' is missing."
        super().__init__(self.message)

def get_value_from_dict(config: Mapping[str, Any], key: str) -> Any:
    """
    从字典中键对应的值

    Args:
        config: 传入的字典对象
        key: 要获取的键

    Returns:
        字典中键对应的值

    Raises:
        Miss_key_exception: 字典对象中没有该键
    """
    if key not in config:
        raise Miss_key_exception(key)
    return config[key]

def get_optional(config: Mapping[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    """
    获取可选配置, 缺失或空白字符串时返回默认值
    """
    value = config.get(key)
    if value is None:
        return default
    value = str(value).strip()
    return value if value else default

def parse_bool(
        value: str,
        true_bools: tuple[str, ...] = ("true", "1", "yes", "y", "on"),
        false_bools: tuple[str, ...] = ("false", "0", "no", "n", "off")
    ) -> bool:
    """
    从字符串中解析是否为布尔值

    Args:
        value: 要解析的字符串
        true_bools: 判定为 True 的字符串元组
        false_bools: 判定为 False 的字符串元组

    Returns:
        True | False

    Raises:
        ValueError: 字符串不被判定为 True 或 False
    """
    if isinstance(value, bool):
        return value

    value = value.strip().lower()

    if value in true_bools:
        return True
    elif value in false_bools:
        return False

    raise ValueError(f"Invalid boolean value: {value}")

def parse_flag(config: Mapping[str, Any], key: str, default: bool) -> bool:
    """
    解析开关类环境变量, 未设置时使用默认值
    """
    value = get_optional(config, key)
    if value is None:
        return default
    return parse_bool(value)
