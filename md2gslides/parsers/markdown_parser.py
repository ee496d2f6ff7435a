"""Markdown tokenizer configured for slide compilation.

Uses the markdown-it ``js-default`` preset with inline HTML enabled (HTML
comments become speaker notes), no linkify and no soft-break-as-newline,
plus the extension stages from ``extensions``.
"""

import logging

from markdown_it import MarkdownIt
from markdown_it.token import Token

from md2gslides.parsers.extensions import EXTENSION_STAGES, ExtensionStage, install_extensions
from md2gslides.schemas.settings import MarkdownSettings

logger = logging.getLogger(__name__)

MD_OPTIONS = {
    "html": True,
    "langPrefix": "highlight ",
    "linkify": False,
    "breaks": False,
}


def build_parser(
    settings: MarkdownSettings | None = None,
    stages: tuple[ExtensionStage, ...] = EXTENSION_STAGES,
) -> MarkdownIt:
    """Create a tokenizer with every available extension stage installed."""
    settings = settings or MarkdownSettings()
    md = MarkdownIt("js-default", MD_OPTIONS)
    installed = install_extensions(md, settings, stages)
    logger.debug(f"Markdown extensions installed: {', '.join(installed) or 'none'}")
    return md


def parse_markdown(
    markdown: str,
    settings: MarkdownSettings | None = None,
    parser: MarkdownIt | None = None,
) -> list[Token]:
    """Tokenize Markdown into a flat markdown-it token stream.

    Args:
        markdown: Source text.
        settings: Extension options, used when ``parser`` is not given.
        parser: A parser from ``build_parser`` to reuse.

    Returns:
        Block-level tokens; inline tokens carry their ``children``.
    """
    parser = parser or build_parser(settings)
    return parser.parse(markdown, {})
