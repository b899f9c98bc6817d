from .annotate import MathAnnotator, TokenAllow, clean_require_name
from .config import DEFAULT_CONFIG, AllowLevel, AttributeKind, PolicyConfig, build_config
from .constants import SAFE_ID_PREFIX
from .css import DeclarationParser, StyleParseError, TinycssDeclarationParser
from .filters import DEFAULT_FILTER, PolicyFilter

__version__ = "2.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_FILTER",
    "SAFE_ID_PREFIX",
    "AllowLevel",
    "AttributeKind",
    "DeclarationParser",
    "MathAnnotator",
    "PolicyConfig",
    "PolicyFilter",
    "StyleParseError",
    "TinycssDeclarationParser",
    "TokenAllow",
    "build_config",
    "clean_require_name",
]
