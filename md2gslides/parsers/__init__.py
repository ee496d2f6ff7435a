from pathlib import Path

from .markdown_parser import build_parser, parse_markdown
from .text_parser import parse_text

_PARSER_MAP = {
    ".md": parse_text,
    ".markdown": parse_text,
    ".txt": parse_text,
}


def parse(path: str | Path) -> str:
    """Read a Markdown source file and return its text.

    Dispatches on file extension. Supported formats: .md, .markdown, .txt
    """
    path = Path(path)
    ext = path.suffix.lower()
    reader = _PARSER_MAP.get(ext)
    if reader is None:
        supported = ", ".join(sorted(_PARSER_MAP.keys()))
        raise ValueError(f"Unsupported file format '{ext}'. Supported: {supported}")
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    return reader(path)


__all__ = ["parse", "parse_text", "parse_markdown", "build_parser"]
