from .logger import setup_logger
from .parsing import parse_json_response, strip_code_fence

__all__ = ["setup_logger", "parse_json_response", "strip_code_fence"]
