"""
SRT parsing and composition utilities.
"""

import logging
import re
from pathlib import Path

from .errors import SubtitleFormatError
from .models import Segment

logger = logging.getLogger("subtrans")

_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_TIME_RE = re.compile(r"\d{1,2}:\d\d:\d\d[,.]\d{1,3}\s*-->\s*\d{1,2}:\d\d:\d\d[,.]\d{1,3}")


def parse_srt_text(raw: str) -> list[Segment]:
    """Parse SRT document text into segments.

    Each block is an index line, a time-range line and one or more text
    lines. Multi-line text is kept with its line breaks so dialogue
    hyphens stay on their own lines.
    """
    raw = raw.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    out: list[Segment] = []
    for position, block in enumerate(_BLOCK_SPLIT_RE.split(raw.strip()), 1):
        lines = [ln.rstrip() for ln in block.splitlines() if ln.strip()]
        if not lines:
            continue
        seg_id = position
        if re.match(r"^\d+$", lines[0].strip()):
            seg_id = int(lines[0].strip())
            lines = lines[1:]
        if not lines or not _TIME_RE.search(lines[0]):
            logger.warning(f"Skipping SRT block {position}: no time range line")
            continue
        timestamp = lines[0].strip()
        text = "\n".join(ln.strip() for ln in lines[1:])
        out.append(Segment(id=seg_id, timestamp=timestamp, text=text))
    return out


def read_srt(path: str | Path) -> list[Segment]:
    """Read and parse an SRT file."""
    with open(path, encoding="utf-8-sig") as f:
        raw = f.read()
    segments = parse_srt_text(raw)
    logger.debug(f"Parsed {len(segments)} segments from {path}")
    return segments


def compose_srt(segments: list[Segment], translations: list[str]) -> str:
    """Rebuild an SRT document with renumbered blocks and substituted text.

    Blocks are separated by exactly one blank line; the last block has no
    trailing blank line.
    """
    if len(segments) != len(translations):
        raise SubtitleFormatError(
            f"Cannot compose SRT: {len(segments)} segments but {len(translations)} translations"
        )
    blocks = [
        f"{i}\n{seg.timestamp}\n{text}"
        for i, (seg, text) in enumerate(zip(segments, translations, strict=True), 1)
    ]
    return "\n\n".join(blocks)


def write_srt(path: str | Path, document: str) -> None:
    """Write a composed SRT document."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(document)
        f.write("\n")


def output_path_for(path: str | Path, language: str) -> Path:
    """Return ``<stem>.<language>.srt`` next to the input file."""
    p = Path(path)
    return p.with_name(f"{p.stem}.{language}.srt")
