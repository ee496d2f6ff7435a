"""Text accumulation context shared by the compiler and the highlighter."""

import logging

from md2gslides.schemas.text_schema import StyleRun, TextBlock, TextStyle

logger = logging.getLogger(__name__)


class Context:
    """Accumulates raw text plus nested style scopes into a TextBlock.

    Each ``start_style`` opens a scope at the current offset and
    ``end_style`` closes the innermost one. Runs are emitted in the order
    their scopes were opened, so inner scopes layer on outer ones.
    """

    def __init__(self, css: dict[str, TextStyle] | None = None):
        self.css = css or {}
        self._parts: list[str] = []
        self._length = 0
        self._last_char = ""
        self._scopes: list[list] = []  # [style, start, end]
        self._open: list[int] = []

    @property
    def length(self) -> int:
        return self._length

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def is_empty(self) -> bool:
        return self._length == 0

    def append_text(self, content: str) -> None:
        if not content:
            return
        self._parts.append(content)
        self._length += len(content)
        self._last_char = content[-1]

    def start_paragraph(self) -> None:
        """Begin a new paragraph unless the text is empty or already at one."""
        if self._length and self._last_char != "\n":
            self.append_text("\n")

    def start_style(self, style: TextStyle) -> None:
        self._scopes.append([style, self._length, None])
        self._open.append(len(self._scopes) - 1)

    def end_style(self) -> None:
        if not self._open:
            logger.debug("end_style() without a matching start_style()")
            return
        scope = self._scopes[self._open.pop()]
        scope[2] = self._length

    def to_text_block(self) -> TextBlock:
        """Build the TextBlock; scopes still open are closed at the end.

        Trailing paragraph breaks are dropped and runs clipped to match.
        """
        raw_text = self.text.rstrip("\n")
        length = len(raw_text)
        runs: list[StyleRun] = []
        for style, start, end in self._scopes:
            end = min(self._length if end is None else end, length)
            if end <= start or style.is_empty():
                continue
            runs.append(StyleRun(start=start, end=end, **style.model_dump(exclude_none=True)))
        return TextBlock(raw_text=raw_text, runs=runs)
