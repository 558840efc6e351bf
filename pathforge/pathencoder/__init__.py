from .encoder import PathEncoder
from .text import TextEncoder, format_number
from .parser import parse_text

__all__ = ["PathEncoder", "TextEncoder", "format_number", "parse_text"]
