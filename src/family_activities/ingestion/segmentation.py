"""
Block Segmenter.

Splits raw page text (often markdown-flavoured) into candidate event blocks.
Over-segmentation is preferred: an extra low-confidence block costs less
downstream than two unrelated events merged into one.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from family_activities.configs.config import Config
from family_activities.configs.settings import get_settings

logger = logging.getLogger(__name__)

_NUMBERED_ITEM = re.compile(r"^\d+\.\s+")
_BULLET_ITEM = re.compile(r"^[*-]\s+")
_HORIZONTAL_RULE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
_SENTENCE_END = re.compile(r"[.!?]$")


@dataclass(frozen=True)
class RawBlock:
    """
    A contiguous span of source lines believed to describe one event.

    ``start_index`` and ``end_index`` are 0-based line numbers in the source
    document; ``lines`` holds the stripped, non-empty lines of the span with
    the title line first.
    """

    title: str
    lines: tuple[str, ...]
    start_index: int
    end_index: int

    @property
    def text(self) -> str:
        return " ".join(self.lines)

    @property
    def body_lines(self) -> tuple[str, ...]:
        return self.lines[1:]


@dataclass
class SegmentationStats:
    total_lines: int = 0
    header_lines: int = 0
    blocks_found: int = 0
    blocks_dropped: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "total_lines": self.total_lines,
            "header_lines": self.header_lines,
            "blocks_found": self.blocks_found,
            "blocks_dropped": self.blocks_dropped,
        }


@dataclass
class _OpenBlock:
    title: str
    start_index: int
    is_heading: bool
    lines: list[str] = field(default_factory=list)
    end_index: int = 0

    def close(self) -> RawBlock:
        return RawBlock(
            title=self.title,
            lines=tuple(self.lines),
            start_index=self.start_index,
            end_index=self.end_index,
        )


class BlockSegmenter:
    """
    Line-oriented event block detection.

    A line starts a block when it is a markdown heading, carries an explicit
    ``Event:``-style prefix, is a numbered or bulleted item, mentions an
    activity keyword, or looks like a title. Blank lines, horizontal rules
    and pagination/footer phrases end the current block.
    """

    def __init__(
        self,
        max_blocks: Optional[int] = None,
        vocabulary: Optional[dict] = None,
    ):
        """
        Initialize the segmenter.

        Args:
            max_blocks: Cap on returned blocks. Defaults to the
                ``MAX_EVENT_BLOCKS`` setting.
            vocabulary: The ``segmentation`` section of extraction.yaml.
                Loaded from the packaged config when omitted.
        """
        self.max_blocks = max_blocks if max_blocks is not None else get_settings().MAX_EVENT_BLOCKS
        if self.max_blocks < 1:
            raise ValueError("max_blocks must be at least 1")

        vocabulary = vocabulary if vocabulary is not None else Config.get_section("segmentation")
        keywords = vocabulary.get("title_keywords", [])
        self._keyword_pattern = re.compile(
            r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")",
            re.IGNORECASE,
        ) if keywords else None
        self.title_prefixes: list[str] = list(vocabulary.get("title_prefixes", []))
        self.footer_phrases: list[str] = [p.lower() for p in vocabulary.get("footer_phrases", [])]
        self.metadata_labels: list[str] = [m.lower() for m in vocabulary.get("metadata_labels", [])]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def segment(self, text: str) -> list[RawBlock]:
        """Split ``text`` into at most ``max_blocks`` blocks, in document order."""
        blocks, _ = self.segment_with_stats(text)
        return blocks

    def segment_with_stats(self, text: str) -> tuple[list[RawBlock], SegmentationStats]:
        """
        Segment ``text`` and report line/block counters.

        Returns:
            Tuple of (blocks, stats)
        """
        stats = SegmentationStats()
        if not text or not text.strip():
            return [], stats

        source_lines = text.splitlines()
        stats.total_lines = len(source_lines)

        blocks: list[RawBlock] = []
        current: Optional[_OpenBlock] = None

        def flush() -> None:
            nonlocal current
            if current is not None:
                block = self._finish(current)
                if block is not None:
                    blocks.append(block)
            current = None

        for index, raw_line in enumerate(source_lines):
            line = raw_line.strip()

            if not line:
                # Blank lines right under a bare heading belong to it
                if current is not None and not (current.is_heading and len(current.lines) == 1):
                    flush()
                continue

            if self.is_separator(line):
                flush()
                continue

            if self.is_block_start(line):
                flush()
                stats.header_lines += 1
                current = _OpenBlock(
                    title=self.clean_title(line),
                    start_index=index,
                    is_heading=line.startswith("#"),
                    lines=[line],
                    end_index=index,
                )
                continue

            if current is not None:
                current.lines.append(line)
                current.end_index = index

        flush()

        stats.blocks_found = len(blocks)
        if len(blocks) > self.max_blocks:
            stats.blocks_dropped = len(blocks) - self.max_blocks
            logger.debug(
                f"Keeping first {self.max_blocks} of {len(blocks)} event blocks"
            )
            blocks = blocks[: self.max_blocks]

        logger.debug(
            f"Segmented {stats.total_lines} lines into {len(blocks)} blocks "
            f"({stats.header_lines} block starts)"
        )
        return blocks, stats

    # ------------------------------------------------------------------
    # Line classification
    # ------------------------------------------------------------------

    def is_block_start(self, line: str) -> bool:
        """Check whether ``line`` opens a new event block."""
        if line.startswith("#"):
            return True

        if any(line.startswith(prefix) for prefix in self.title_prefixes):
            return True

        item = _NUMBERED_ITEM.sub("", _BULLET_ITEM.sub("", line), count=1)
        # "- Date: Oct 3" is a detail of the current event, not a new one
        if self.is_metadata_line(item, leading_only=True):
            return False

        if item != line:
            return True

        if _SENTENCE_END.search(line):
            return False

        if 5 < len(line) < 100 and self._keyword_pattern and self._keyword_pattern.search(line):
            return True

        return self.looks_like_title(line)

    def is_separator(self, line: str) -> bool:
        """Horizontal rules and pagination/footer phrases end a block."""
        if _HORIZONTAL_RULE.match(line):
            return True
        lower = line.lower()
        return any(phrase in lower for phrase in self.footer_phrases)

    def is_metadata_line(self, line: str, leading_only: bool = False) -> bool:
        """
        Check whether ``line`` carries a labeled detail (``Date:``, ``Price:``...).

        Args:
            line: Stripped line text.
            leading_only: Only accept labels at the start of the line.
        """
        lower = line.lower()
        if leading_only:
            return any(lower.startswith(label) for label in self.metadata_labels)
        return any(label in lower for label in self.metadata_labels)

    @staticmethod
    def looks_like_title(line: str) -> bool:
        """2-15 words with at least half of them capitalized."""
        words = line.split()
        if len(words) < 2 or len(words) > 15:
            return False
        capitalized = sum(1 for word in words if "A" <= word[0] <= "Z")
        return capitalized / len(words) >= 0.5

    def clean_title(self, line: str) -> str:
        """Strip heading marks, list markers, known prefixes and emphasis."""
        title = line.strip().lstrip("#").strip()
        title = _BULLET_ITEM.sub("", title, count=1)
        title = _NUMBERED_ITEM.sub("", title, count=1)
        for prefix in self.title_prefixes:
            if title.startswith(prefix):
                title = title[len(prefix):].strip()
                break
        return title.strip("*_ ").strip()

    def _finish(self, block: _OpenBlock) -> Optional[RawBlock]:
        if not block.title:
            logger.debug(f"Dropping block at line {block.start_index}: empty title")
            return None
        # A heading with nothing under it is a section header, not an event
        if block.is_heading and len(block.lines) == 1:
            logger.debug(f"Dropping bare heading '{block.title}' at line {block.start_index}")
            return None
        return block.close()
