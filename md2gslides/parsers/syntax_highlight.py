"""Convert highlighted code into styled runs.

Pygments renders the code as HTML spans; the span tree is walked
depth-first. Text is appended verbatim except that line feeds become
vertical tabs, which keeps a code block a single paragraph on the slide
(no inter-paragraph spacing). Only ``span`` elements are understood;
any other element is skipped together with its children.
"""

import logging
from typing import Callable

from bs4 import BeautifulSoup, NavigableString, Tag
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from md2gslides.parsers.css import update_style_definition
from md2gslides.parsers.env import Context
from md2gslides.schemas.text_schema import TextStyle

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\u000b"


def _process_node(node, context: Context) -> None:
    if isinstance(node, Tag):
        rule = _RULES.get(node.name)
        if rule is None:
            logger.debug(f"Skipping unsupported element <{node.name}> in highlighted code")
            return
        rule(node, context)
    elif isinstance(node, NavigableString):
        context.append_text(str(node).replace("\n", LINE_SEPARATOR))


def _extract_style(node: Tag, context: Context) -> TextStyle:
    style = TextStyle()
    for cls in node.get("class") or []:
        rule = context.css.get(cls.replace("-", "_"))
        if rule is not None:
            style = update_style_definition(rule, style)
    return style


def _span_rule(node: Tag, context: Context) -> None:
    context.start_style(_extract_style(node, context))
    for child in node.children:
        _process_node(child, context)
    context.end_style()


_RULES: dict[str, Callable[[Tag, Context], None]] = {
    "span": _span_rule,
}


def _get_lexer(language: str):
    try:
        return get_lexer_by_name(language, stripnl=False, ensurenl=False)
    except ClassNotFound:
        logger.debug(f"No lexer for '{language}', highlighting as plain text")
        return TextLexer(stripnl=False, ensurenl=False)


def highlight_syntax(content: str, language: str, context: Context) -> None:
    """Append ``content`` to the context with syntax-highlighting runs.

    Args:
        content: Source code to highlight.
        language: Language name or alias (unknown names render as plain text).
        context: Destination; its ``css`` maps token classes to styles.
    """
    html = highlight(content, _get_lexer(language), HtmlFormatter(nowrap=True))
    # The formatter always terminates the last line.
    if html.endswith("\n") and not content.endswith("\n"):
        html = html[:-1]

    # Whitespace-only text between spans survives only inside <pre>.
    soup = BeautifulSoup(f"<pre>{html}</pre>", "html.parser")
    for node in soup.pre.contents:
        _process_node(node, context)
