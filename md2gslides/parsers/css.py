"""CSS-derived style rules for highlighted code.

Pygments' HtmlFormatter compiles a style into one CSS declaration list per
token class (``k``, ``s2``, ``c1``, ...). Those declarations are parsed
back into TextStyle rules keyed by class name, with ``-`` normalized to
``_``.
"""

import logging
import re

from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from md2gslides.schemas.text_schema import TextStyle

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

CssRule = TextStyle


def parse_declarations(css: str) -> CssRule:
    """Turn ``color: #008000; font-weight: bold`` into a TextStyle."""
    style: dict = {}
    for declaration in css.split(";"):
        if ":" not in declaration:
            continue
        prop, value = (part.strip() for part in declaration.split(":", 1))
        prop = prop.lower()
        if prop == "color" and _HEX_COLOR.match(value):
            style["foreground_color"] = value.upper()
        elif prop == "background-color" and _HEX_COLOR.match(value):
            style["background_color"] = value.upper()
        elif prop == "font-weight":
            style["bold"] = value == "bold"
        elif prop == "font-style":
            style["italic"] = value == "italic"
        elif prop == "text-decoration":
            style["underline"] = "underline" in value
    return TextStyle(**style)


def load_css_rules(style_name: str = "default") -> dict[str, CssRule]:
    """Build class -> rule mapping for a Pygments style."""
    try:
        formatter = HtmlFormatter(style=style_name)
    except ClassNotFound:
        logger.warning(f"Unknown highlight style '{style_name}', using 'default'")
        formatter = HtmlFormatter(style="default")

    rules: dict[str, CssRule] = {}
    for css_class, (declarations, _ttype, _level) in formatter.class2style.items():
        rule = parse_declarations(declarations)
        if not rule.is_empty():
            rules[css_class.replace("-", "_")] = rule
    return rules


def update_style_definition(rule: CssRule, style: TextStyle) -> TextStyle:
    """Layer a rule's attributes on top of an existing style."""
    return style.merged(rule)
