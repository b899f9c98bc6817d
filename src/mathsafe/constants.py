"""Default policy tables.

These are the values a policy starts from before overrides are merged in.
They mirror the MathJax "Safe" extension defaults.

Usage:
    from mathsafe.constants import SAFE_PROTOCOLS, SAFE_STYLES
"""

# Prefix reserved for class names and ids owned by the renderer.
SAFE_ID_PREFIX = "MJX-"

# Font-size clamp bounds, in em (\scriptsize .. \large).
SIZE_MIN = 0.7
SIZE_MAX = 1.44

SAFE_PROTOCOLS = {
    "http": True,
    "https": True,
    "file": True,
    "javascript": False,
}

# Keys are DOM style-object names (camelCase).
SAFE_STYLES = {
    "color": True,
    "backgroundColor": True,
    "border": True,
    "cursor": True,
    "margin": True,
    "padding": True,
    "textShadow": True,
    "fontFamily": True,
    "fontSize": True,
    "fontStyle": True,
    "fontWeight": True,
    "opacity": True,
    "outline": True,
}

SAFE_REQUIRE = {
    "action": True,
    "amscd": True,
    "amsmath": True,
    "amssymbols": True,
    "autobold": False,
    "autoload-all": False,
    "bbox": True,
    "begingroup": True,
    "boldsymbol": True,
    "cancel": True,
    "color": True,
    "enclose": True,
    "extpfeil": True,
    "HTML": True,
    "mathchoice": True,
    "mhchem": True,
    "newcommand": True,
    "noErrors": False,
    "noUndefined": False,
    "unicode": True,
    "verb": True,
}

# MathML attributes that go through a policy filter.
MATHML_FILTERED_ATTRIBUTES = ["href", "class", "id", "fontsize", "style"]
