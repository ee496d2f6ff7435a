"""Reader for Markdown source files."""

from pathlib import Path

from md2gslides.utils.file_utils import read_source


def parse_text(path: Path) -> str:
    """Read a .md or .txt file and return its content.

    Line endings are normalized and a leading BOM is dropped. Blank lines
    are kept as-is since they separate Markdown blocks.
    """
    return read_source(path)
