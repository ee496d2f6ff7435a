"""Tokenizer extension stages layered on markdown-it-py.

Each stage is a named installer run against a ``MarkdownIt`` instance.
The pipeline is fixed; a stage that fails to install is logged and
skipped so the affected syntax simply degrades to plain text.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable

import emoji
from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock
from markdown_it.rules_core import StateCore
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token
from mdit_py_plugins.attrs import attrs_block_plugin, attrs_plugin

from md2gslides.schemas.settings import MarkdownSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtensionStage:
    name: str
    install: Callable[[MarkdownIt, MarkdownSettings], None]


# ---------------------------------------------------------------------------
# Attributes: {.class #id key=value}
# ---------------------------------------------------------------------------

_TRAILING_ATTRS_RE = re.compile(r"\s*\{([^{}]*)\}\s*$")
_ATTR_RE = re.compile(
    r"""([.#])([\w-]+)|([\w-]+)=(?:"([^"]*)"|'([^']*)'|([^\s"']+))"""
)


def parse_attributes(text: str) -> dict[str, str]:
    """Parse ``.big #intro layout="MAIN_POINT"`` into an attribute dict.

    Multiple classes are joined with spaces under ``class``.
    """
    attrs: dict[str, str] = {}
    classes: list[str] = []
    for match in _ATTR_RE.finditer(text):
        if match.group(1) == ".":
            classes.append(match.group(2))
        elif match.group(1) == "#":
            attrs["id"] = match.group(2)
        else:
            value = next(v for v in match.group(4, 5, 6) if v is not None)
            attrs[match.group(3)] = value
    if classes:
        attrs["class"] = " ".join(classes)
    return attrs


def _heading_attrs_rule(state: StateCore) -> None:
    """Move a trailing ``{...}`` on a heading line onto the heading token."""
    tokens = state.tokens
    for i, token in enumerate(tokens[:-1]):
        if token.type != "heading_open":
            continue
        inline = tokens[i + 1]
        if inline.type != "inline":
            continue
        match = _TRAILING_ATTRS_RE.search(inline.content)
        if not match:
            continue
        attrs = parse_attributes(match.group(1))
        if not attrs:
            continue
        inline.content = inline.content[: match.start()]
        for key, value in attrs.items():
            if key == "class" and token.attrGet("class"):
                token.attrJoin("class", value)
            else:
                token.attrSet(key, value)


def _install_attributes(md: MarkdownIt, settings: MarkdownSettings) -> None:
    md.use(attrs_plugin, spans=True)
    md.use(attrs_block_plugin)
    md.core.ruler.after("block", "heading_attrs", _heading_attrs_rule)


# ---------------------------------------------------------------------------
# Lazy headers: "#Title" without the space
# ---------------------------------------------------------------------------

_CLOSING_HASHES_RE = re.compile(r"(?:^|\s+)#+$")


def _lazy_heading_rule(state: StateBlock, start_line: int, end_line: int, silent: bool) -> bool:
    if state.sCount[start_line] - state.blkIndent >= 4:
        return False
    pos = state.bMarks[start_line] + state.tShift[start_line]
    maximum = state.eMarks[start_line]
    if pos >= maximum or state.src[pos] != "#":
        return False

    level = 0
    while pos < maximum and state.src[pos] == "#":
        level += 1
        pos += 1
    if level > 6:
        return False
    if silent:
        return True

    content = _CLOSING_HASHES_RE.sub("", state.src[pos:maximum].strip()).strip()
    state.line = start_line + 1

    token = state.push("heading_open", f"h{level}", 1)
    token.markup = "#" * level
    token.map = [start_line, state.line]

    token = state.push("inline", "", 0)
    token.content = content
    token.map = [start_line, state.line]
    token.children = []

    token = state.push("heading_close", f"h{level}", -1)
    token.markup = "#" * level
    return True


def _install_lazy_headers(md: MarkdownIt, settings: MarkdownSettings) -> None:
    md.block.ruler.at(
        "heading", _lazy_heading_rule, {"alt": ["paragraph", "reference", "blockquote"]}
    )


# ---------------------------------------------------------------------------
# Emoji shortcodes
# ---------------------------------------------------------------------------

_EMOJI_RE = re.compile(r":([\w+-]+):")


def _text_token(source: Token, content: str) -> Token:
    return Token("text", "", 0, content=content, level=source.level)


def _split_emoji(token: Token) -> list[Token]:
    text = token.content
    pieces: list[Token] = []
    last = 0
    for match in _EMOJI_RE.finditer(text):
        glyph = emoji.emojize(match.group(0), language="alias")
        if glyph == match.group(0):
            continue
        if match.start() > last:
            pieces.append(_text_token(token, text[last : match.start()]))
        pieces.append(Token("emoji", "", 0, content=glyph, markup=match.group(1), level=token.level))
        last = match.end()
    if not pieces:
        return [token]
    if last < len(text):
        pieces.append(_text_token(token, text[last:]))
    return pieces


def _emoji_rule(state: StateCore) -> None:
    for block in state.tokens:
        if block.type != "inline" or not block.children:
            continue
        children: list[Token] = []
        in_autolink = 0
        for child in block.children:
            if child.type == "link_open" and child.markup == "autolink":
                in_autolink += 1
            elif child.type == "link_close" and child.markup == "autolink":
                in_autolink -= 1
            if child.type == "text" and not in_autolink:
                children.extend(_split_emoji(child))
            else:
                children.append(child)
        block.children = children


def _install_emoji(md: MarkdownIt, settings: MarkdownSettings) -> None:
    md.core.ruler.after("inline", "emoji", _emoji_rule)


# ---------------------------------------------------------------------------
# Tab expansion in code
# ---------------------------------------------------------------------------

_CODE_TOKENS = ("fence", "code_block", "generated_image")


def _install_expand_tabs(md: MarkdownIt, settings: MarkdownSettings) -> None:
    tab_width = settings.tab_width

    def expand_tabs(state: StateCore) -> None:
        for token in state.tokens:
            if token.type in _CODE_TOKENS and "\t" in token.content:
                token.content = token.content.expandtabs(tab_width)

    md.core.ruler.after("block", "expand_tabs", expand_tabs)


# ---------------------------------------------------------------------------
# Generated images: fenced source rendered to an image later
# ---------------------------------------------------------------------------

def _make_generated_image_rule(marker: str, min_markers: int):
    def generated_image(state: StateBlock, start_line: int, end_line: int, silent: bool) -> bool:
        if state.sCount[start_line] - state.blkIndent >= 4:
            return False
        pos = state.bMarks[start_line] + state.tShift[start_line]
        maximum = state.eMarks[start_line]
        if pos >= maximum or state.src[pos] != marker:
            return False

        start = pos
        while pos < maximum and state.src[pos] == marker and pos - start < 3:
            pos += 1
        markup = state.src[start:pos]
        if len(markup) < min_markers:
            return False
        if silent:
            return True

        params = state.src[pos:maximum].strip()
        next_line = start_line
        closed = False
        while True:
            next_line += 1
            # Unterminated blocks close at the end of the document.
            if next_line >= end_line:
                break
            pos = state.bMarks[next_line] + state.tShift[next_line]
            maximum = state.eMarks[next_line]
            if pos < maximum and state.sCount[next_line] < state.blkIndent:
                break
            if state.src[pos:maximum].strip() == markup:
                closed = True
                break

        token = state.push("generated_image", "div", 0)
        token.info = params
        token.markup = markup
        token.block = True
        token.content = state.getLines(start_line + 1, next_line, state.sCount[start_line], True)
        token.map = [start_line, next_line]
        state.line = next_line + (1 if closed else 0)
        return True

    return generated_image


def _install_generated_image(md: MarkdownIt, settings: MarkdownSettings) -> None:
    rule = _make_generated_image_rule(
        settings.generated_image_marker, settings.generated_image_min_markers
    )
    md.block.ruler.before(
        "fence", "generated_image", rule, {"alt": ["paragraph", "reference", "blockquote", "list"]}
    )


# ---------------------------------------------------------------------------
# Embedded video: @[youtube](id-or-url)
# ---------------------------------------------------------------------------

_VIDEO_RE = re.compile(r"@\[([A-Za-z]+)\]\(\s*([^\s)]+)\s*\)")
_YOUTUBE_ID_RE = re.compile(r"^.*(?:youtu\.be/|v/|/u/\w/|embed/|watch\?)\??v?=?([^#&?]*).*")
_VIMEO_ID_RE = re.compile(
    r"https?://(?:www\.|player\.)?vimeo\.com/"
    r"(?:channels/(?:\w+/)?|groups/[^/]*/videos/|album/\d+/video/|video/|)(\d+)(?:$|/|\?)"
)


def video_id(service: str, url: str) -> str:
    """Extract the provider's video id from a URL; bare ids pass through."""
    if service == "youtube":
        match = _YOUTUBE_ID_RE.match(url)
        if match and len(match.group(1)) == 11:
            return match.group(1)
    elif service == "vimeo":
        match = _VIMEO_ID_RE.match(url)
        if match:
            return match.group(1)
    return url


def _make_video_rule(sizes: dict[str, tuple[int, int]]):
    def video(state: StateInline, silent: bool) -> bool:
        if state.src[state.pos] != "@":
            return False
        match = _VIDEO_RE.match(state.src, state.pos, state.posMax)
        if not match:
            return False
        service = match.group(1).lower()
        if service not in sizes:
            return False
        if not silent:
            url = match.group(2)
            width, height = sizes[service]
            token = state.push("video", "", 0)
            token.info = service
            token.meta = {
                "service": service,
                "video_id": video_id(service, url),
                "url": url,
                "width": width,
                "height": height,
            }
        state.pos = match.end()
        return True

    return video


def _install_video(md: MarkdownIt, settings: MarkdownSettings) -> None:
    sizes = {
        "youtube": (settings.youtube_width, settings.youtube_height),
        "vimeo": (settings.vimeo_width, settings.vimeo_height),
    }
    md.inline.ruler.before("emphasis", "video", _make_video_rule(sizes))


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

EXTENSION_STAGES: tuple[ExtensionStage, ...] = (
    ExtensionStage("attributes", _install_attributes),
    ExtensionStage("lazy_headers", _install_lazy_headers),
    ExtensionStage("emoji", _install_emoji),
    ExtensionStage("expand_tabs", _install_expand_tabs),
    ExtensionStage("generated_image", _install_generated_image),
    ExtensionStage("video", _install_video),
)


def install_extensions(
    md: MarkdownIt,
    settings: MarkdownSettings,
    stages: tuple[ExtensionStage, ...] = EXTENSION_STAGES,
) -> list[str]:
    """Install each stage in order; returns the names that installed."""
    installed = []
    for stage in stages:
        try:
            stage.install(md, settings)
        except Exception as err:
            logger.warning(f"Markdown extension '{stage.name}' unavailable: {err}")
            continue
        installed.append(stage.name)
    return installed
