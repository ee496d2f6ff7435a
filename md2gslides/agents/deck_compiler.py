"""Deck Compiler: Markdown to slide definitions.

The token stream is walked once. ``---`` starts a new slide, the first
``#`` heading becomes the title and a ``##`` right after it the subtitle;
everything else accumulates into the current body. ``{.column}`` on a
block starts a new body (column). HTML comments become speaker notes.

After the walk each slide gets a layout (``match_layout``) and every
title, subtitle and body is auto-fitted to the box it will land in.
"""

import logging
import re

from markdown_it.token import Token

from md2gslides.parsers.css import load_css_rules, parse_declarations
from md2gslides.parsers.env import Context
from md2gslides.parsers.markdown_parser import build_parser
from md2gslides.parsers.syntax_highlight import LINE_SEPARATOR, highlight_syntax
from md2gslides.schemas.presentation_schema import PresentationMeta
from md2gslides.schemas.settings import CompilerSettings
from md2gslides.schemas.slide_schema import (
    BodyDefinition,
    DeckDefinition,
    ImageDefinition,
    ListMarker,
    SlideDefinition,
    TableDefinition,
    VideoDefinition,
)
from md2gslides.schemas.text_schema import Box, FontSize, Link, TextBlock, TextStyle
from md2gslides.slides_engine.font_metrics import FontMetricsRegistry
from md2gslides.slides_engine.layout_registry import BIG_LAYOUTS, match_layout, placeholder_box
from md2gslides.slides_engine.text_operations import apply_font_size, fit_font_size

logger = logging.getLogger(__name__)

_COMMENT_RE = re.compile(r"<!--(.*?)-->", re.DOTALL)
_HTML_TAG_RE = re.compile(r"^<\s*(/?)\s*([A-Za-z][A-Za-z0-9]*)\b[^>]*>$")


def _classes(token: Token) -> list[str]:
    value = token.attrGet("class")
    return str(value).split() if value else []


def _number(value) -> float | None:
    try:
        return float(str(value).rstrip("px")) if value is not None else None
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Walk state
# ---------------------------------------------------------------------------

class _BodyState:
    def __init__(self, css):
        self.context = Context(css)
        self.images: list[ImageDefinition] = []
        self.videos: list[VideoDefinition] = []
        self.lists: list[ListMarker] = []

    def is_empty(self) -> bool:
        return self.context.is_empty() and not self.images and not self.videos

    def to_definition(self) -> BodyDefinition:
        text = None if self.context.is_empty() else self.context.to_text_block()
        length = len(text.raw_text) if text is not None else 0
        lists = [
            marker.model_copy(update={"end": min(marker.end, length)})
            for marker in self.lists
            if marker.start < length
        ]
        return BodyDefinition(text=text, images=self.images, videos=self.videos, lists=lists)


def _blank(context: Context | None) -> bool:
    return context is None or not context.text.strip()


class _SlideState:
    def __init__(self, css):
        self.css = css
        self.title: Context | None = None
        self.subtitle: Context | None = None
        self.bodies = [_BodyState(css)]
        self.tables: list[TableDefinition] = []
        self.notes: list[str] = []
        self.classes: list[str] = []
        self.layout: str | None = None
        self.template: str | None = None
        self.background: ImageDefinition | None = None

    @property
    def body(self) -> _BodyState:
        return self.bodies[-1]

    def new_column(self) -> None:
        if not self.body.is_empty():
            self.bodies.append(_BodyState(self.css))

    def has_body_content(self) -> bool:
        return bool(self.tables) or any(not b.is_empty() for b in self.bodies)

    def is_empty(self) -> bool:
        return (
            _blank(self.title)
            and _blank(self.subtitle)
            and not self.has_body_content()
            and not self.notes
            and self.background is None
            and self.template is None
        )

    def to_definition(self, index: int) -> SlideDefinition:
        return SlideDefinition(
            index=index,
            layout=self.layout,
            classes=self.classes,
            title=None if _blank(self.title) else self.title.to_text_block(),
            subtitle=None if _blank(self.subtitle) else self.subtitle.to_text_block(),
            bodies=[b.to_definition() for b in self.bodies if not b.is_empty()],
            tables=self.tables,
            notes="\n".join(self.notes) or None,
            background_image=self.background,
            template_slide_id=self.template,
        )


class _TokenWalker:
    """Single pass over block tokens, dispatching on ``token.type``."""

    def __init__(self, settings: CompilerSettings, css):
        self.settings = settings
        self.css = css
        self.slides: list[SlideDefinition] = []
        self.slide = _SlideState(css)
        self.target: Context | None = None
        self.body_heading = False
        self.item_start = False
        self.list_stack: list[tuple[bool, int]] = []
        self.rows: list[list[TextBlock]] | None = None
        self.row: list[TextBlock] | None = None
        self.cell: Context | None = None

    @property
    def context(self) -> Context:
        if self.cell is not None:
            return self.cell
        if self.target is not None:
            return self.target
        return self.slide.body.context

    def walk(self, tokens: list[Token]) -> list[SlideDefinition]:
        for token in tokens:
            if token.nesting >= 0 and "column" in _classes(token):
                self.slide.new_column()
            handler = getattr(self, f"_on_{token.type}", None)
            if handler is not None:
                handler(token)
        self._finish_slide()
        return self.slides

    def _finish_slide(self) -> None:
        if not self.slide.is_empty():
            self.slides.append(self.slide.to_definition(len(self.slides)))
        self.slide = _SlideState(self.css)
        self.target = None
        self.list_stack = []

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _on_hr(self, token: Token) -> None:
        self._finish_slide()

    def _on_heading_open(self, token: Token) -> None:
        level = int(token.tag[1:])
        slide = self.slide
        slide.classes.extend(c for c in _classes(token) if c != "column" and c not in slide.classes)
        if token.attrGet("layout"):
            slide.layout = str(token.attrGet("layout")).upper()
        if token.attrGet("template"):
            slide.template = str(token.attrGet("template"))

        if level == 1 and slide.title is None and not slide.has_body_content():
            slide.title = Context(self.css)
            self.target = slide.title
        elif (
            level == 2
            and slide.title is not None
            and slide.subtitle is None
            and not slide.has_body_content()
        ):
            slide.subtitle = Context(self.css)
            self.target = slide.subtitle
        else:
            fonts = self.settings.fonts
            size = fonts.heading_sizes.get(level, fonts.base_size)
            context = slide.body.context
            context.start_paragraph()
            context.start_style(TextStyle(bold=True, font_size=FontSize(magnitude=size)))
            self.body_heading = True

    def _on_heading_close(self, token: Token) -> None:
        if self.body_heading:
            self.slide.body.context.end_style()
            self.body_heading = False
        self.target = None

    def _on_paragraph_open(self, token: Token) -> None:
        if self.item_start:
            self.item_start = False
            return
        context = self.context
        context.start_paragraph()
        if self.list_stack:
            context.append_text("\t" * (len(self.list_stack) - 1))

    def _on_inline(self, token: Token) -> None:
        self._render_inline(token.children or [], self.context)

    def _open_list(self, ordered: bool) -> None:
        context = self.slide.body.context
        if not self.list_stack:
            context.start_paragraph()
        self.list_stack.append((ordered, context.length))

    def _close_list(self) -> None:
        if not self.list_stack:
            return
        ordered, start = self.list_stack.pop()
        if not self.list_stack:
            end = self.slide.body.context.length
            self.slide.body.lists.append(ListMarker(start=start, end=end, ordered=ordered))

    def _on_bullet_list_open(self, token: Token) -> None:
        self._open_list(False)

    def _on_ordered_list_open(self, token: Token) -> None:
        self._open_list(True)

    def _on_bullet_list_close(self, token: Token) -> None:
        self._close_list()

    def _on_ordered_list_close(self, token: Token) -> None:
        self._close_list()

    def _on_list_item_open(self, token: Token) -> None:
        context = self.slide.body.context
        context.start_paragraph()
        context.append_text("\t" * (len(self.list_stack) - 1))
        self.item_start = True

    def _on_list_item_close(self, token: Token) -> None:
        self.item_start = False

    def _on_blockquote_open(self, token: Token) -> None:
        context = self.slide.body.context
        context.start_paragraph()
        context.start_style(TextStyle(italic=True))

    def _on_blockquote_close(self, token: Token) -> None:
        self.slide.body.context.end_style()

    def _on_fence(self, token: Token) -> None:
        info = token.info.strip()
        self._append_code(token.content, info.split()[0] if info else "")

    def _on_code_block(self, token: Token) -> None:
        self._append_code(token.content, "")

    def _append_code(self, content: str, language: str) -> None:
        context = self.slide.body.context
        context.start_paragraph()
        context.start_style(TextStyle(font_family=self.settings.fonts.code_family))
        content = content.rstrip("\n")
        if language and self.settings.highlight.enabled:
            highlight_syntax(content, language, context)
        else:
            context.append_text(content.replace("\n", LINE_SEPARATOR))
        context.end_style()

    def _on_generated_image(self, token: Token) -> None:
        self.slide.body.images.append(
            ImageDefinition(generator=token.info, source=token.content)
        )

    def _on_html_block(self, token: Token) -> None:
        self._add_notes(token.content)

    def _add_notes(self, html: str) -> bool:
        found = False
        for match in _COMMENT_RE.finditer(html):
            found = True
            text = match.group(1).strip()
            if text:
                self.slide.notes.append(text)
        return found

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _on_table_open(self, token: Token) -> None:
        self.rows = []

    def _on_tr_open(self, token: Token) -> None:
        self.row = []

    def _on_th_open(self, token: Token) -> None:
        self.cell = Context(self.css)
        self.cell.start_style(TextStyle(bold=True))

    def _on_td_open(self, token: Token) -> None:
        self.cell = Context(self.css)

    def _close_cell(self) -> None:
        if self.cell is None:
            return
        if self.row is not None:
            self.row.append(self.cell.to_text_block())
        self.cell = None

    def _on_th_close(self, token: Token) -> None:
        if self.cell is not None:
            self.cell.end_style()
        self._close_cell()

    def _on_td_close(self, token: Token) -> None:
        self._close_cell()

    def _on_tr_close(self, token: Token) -> None:
        if self.rows is not None and self.row is not None:
            self.rows.append(self.row)
        self.row = None

    def _on_table_close(self, token: Token) -> None:
        rows = self.rows or []
        columns = max((len(r) for r in rows), default=0)
        cells = [r + [TextBlock() for _ in range(columns - len(r))] for r in rows]
        self.slide.tables.append(TableDefinition(rows=len(rows), columns=columns, cells=cells))
        self.rows = None

    # ------------------------------------------------------------------
    # Inline
    # ------------------------------------------------------------------

    def _render_inline(self, children: list[Token], context: Context) -> None:
        fonts = self.settings.fonts
        for child in children:
            kind = child.type
            if kind in ("text", "emoji"):
                context.append_text(child.content)
            elif kind == "softbreak":
                context.append_text(" ")
            elif kind == "hardbreak":
                context.append_text(LINE_SEPARATOR)
            elif kind == "strong_open":
                context.start_style(TextStyle(bold=True))
            elif kind == "em_open":
                context.start_style(TextStyle(italic=True))
            elif kind == "s_open":
                context.start_style(TextStyle(strikethrough=True))
            elif kind == "link_open":
                context.start_style(
                    TextStyle(
                        link=Link(url=str(child.attrGet("href") or "")),
                        underline=True,
                        foreground_color=fonts.link_color,
                    )
                )
            elif kind == "span_open":
                style_attr = child.attrGet("style")
                context.start_style(parse_declarations(str(style_attr)) if style_attr else TextStyle())
            elif kind in ("strong_close", "em_close", "s_close", "link_close", "span_close"):
                context.end_style()
            elif kind == "code_inline":
                context.start_style(
                    TextStyle(font_family=fonts.code_family, foreground_color=fonts.code_color)
                )
                context.append_text(child.content)
                context.end_style()
            elif kind == "image":
                self._add_image(child)
            elif kind == "video":
                self.slide.body.videos.append(VideoDefinition(**child.meta))
            elif kind == "html_inline":
                self._inline_html(child.content, context)
            else:
                logger.debug(f"Ignoring inline token {kind}")

    def _inline_html(self, html: str, context: Context) -> None:
        if self._add_notes(html):
            return
        match = _HTML_TAG_RE.match(html.strip())
        if not match:
            logger.debug(f"Ignoring inline HTML {html!r}")
            return
        closing, tag = match.group(1), match.group(2).lower()
        if tag == "br":
            context.append_text(LINE_SEPARATOR)
        elif tag in ("sup", "sub"):
            if closing:
                context.end_style()
            else:
                offset = "SUPERSCRIPT" if tag == "sup" else "SUBSCRIPT"
                context.start_style(TextStyle(baseline_offset=offset))
        else:
            logger.debug(f"Ignoring inline HTML tag <{closing}{tag}>")

    def _add_image(self, token: Token) -> None:
        image = ImageDefinition(
            url=str(token.attrGet("src") or ""),
            alt=token.content or "",
            width=_number(token.attrGet("width")),
            height=_number(token.attrGet("height")),
        )
        if "background" in _classes(token):
            self.slide.background = image
        else:
            self.slide.body.images.append(image)


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------

class DeckCompiler:
    """Compile Markdown into a DeckDefinition.

    One compiler owns one tokenizer, one set of highlight rules and one
    font metrics registry; reuse it across documents of a session.
    """

    def __init__(
        self,
        settings: CompilerSettings | None = None,
        registry: FontMetricsRegistry | None = None,
    ):
        self.settings = settings or CompilerSettings()
        self.registry = registry or FontMetricsRegistry(
            default_family=self.settings.fonts.default_family
        )
        self.parser = build_parser(self.settings.markdown)
        self.css = load_css_rules(self.settings.highlight.style)

    def compile(self, markdown: str, presentation: PresentationMeta | None = None) -> DeckDefinition:
        """Compile a Markdown document.

        Args:
            markdown: Source text.
            presentation: Target presentation snapshot. Its layouts restrict
                layout matching and supply placeholder boxes for auto-fit.

        Returns:
            The compiled deck.
        """
        tokens = self.parser.parse(markdown, {})
        slides = _TokenWalker(self.settings, self.css).walk(tokens)

        available = None
        if presentation is not None:
            available = {layout.name for layout in presentation.layouts if layout.name}
        for slide in slides:
            slide.layout = match_layout(slide, available)
            if self.settings.autofit.enabled:
                self.fit_slide(slide, presentation)

        title = None
        if slides and slides[0].title is not None:
            title = slides[0].title.raw_text.replace(LINE_SEPARATOR, " ").strip() or None
        logger.info(f"Compiled {len(slides)} slides")
        return DeckDefinition(title=title, slides=slides)

    def fit_slide(self, slide: SlideDefinition, presentation: PresentationMeta | None = None) -> None:
        """Auto-fit the title, subtitle and bodies of one slide in place."""
        fit = self.settings.autofit
        boxes = self.settings.boxes
        layout_name = slide.layout or ""
        layout = presentation.find_layout(layout_name) if presentation is not None else None
        bodies = slide.text_bodies

        if slide.title is not None and not slide.title.is_blank():
            max_pt = fit.big_max_pt if layout_name in BIG_LAYOUTS else fit.title_max_pt
            box = placeholder_box(layout_name, "title", 0, layout, len(bodies), boxes)
            slide.title = self.fit_text(slide.title, box, max_pt)
        if slide.subtitle is not None and not slide.subtitle.is_blank():
            box = placeholder_box(layout_name, "subtitle", 0, layout, len(bodies), boxes)
            slide.subtitle = self.fit_text(slide.subtitle, box, fit.subtitle_max_pt)
        for i, body in enumerate(bodies):
            box = placeholder_box(layout_name, "body", i, layout, len(bodies), boxes)
            body.text = self.fit_text(body.text, box, fit.body_max_pt)

    def fit_text(self, text: TextBlock, box: Box, max_pt: float) -> TextBlock:
        """Size a TextBlock so it fits ``box``."""
        fonts = self.settings.fonts
        family = text.font_family or fonts.default_family
        measured = text.raw_text.replace(LINE_SEPARATOR, "\n")
        size = fit_font_size(measured, box, max_pt, self.settings.autofit.min_pt, family, self.registry)
        return apply_font_size(text, size, base=fonts.base_size, scale=self.settings.autofit.font_scale)
