"""
向外暴露 classify_event, normalize_content, MoviePilot 通知统一经这里解析
"""

from .normalizer import Classification, classify_event, extract_text_and_image, normalize_content

__all__ = ["Classification", "classify_event", "extract_text_and_image", "normalize_content"]
