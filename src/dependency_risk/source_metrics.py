"""Static source scanning: lines of code per language and unsafe lines.

The scanner only sees files; which files belong to a package is decided by
the provenance resolver beforehand.
"""

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dependency_risk.models import LeafMetrics

logger = logging.getLogger(__name__)

# Maps file extension -> language name
EXT_TO_LANGUAGE: dict[str, str] = {
    ".rs": "Rust",
    ".c": "C",
    ".h": "C",
    ".cc": "C++",
    ".cpp": "C++",
    ".cxx": "C++",
    ".hpp": "C++",
    ".s": "Assembly",
    ".S": "Assembly",
    ".asm": "Assembly",
    ".go": "Go",
    ".java": "Java",
    ".js": "JavaScript",
    ".ts": "TypeScript",
    ".py": "Python",
    ".sh": "Shell",
    ".toml": "TOML",
    ".yml": "YAML",
    ".yaml": "YAML",
}


@dataclass(frozen=True)
class LanguageSyntax:
    """Comment and literal syntax of a language family.

    Attributes:
        line_comment: Prefix of a comment running to the end of the line.
        block_comment: Start and end markers of a block comment.
        nested_blocks: True if block comments nest (Rust).
        quotes: String delimiters honouring backslash escapes, longest first.
        raw_quotes: String delimiters without escapes.
        rust_literals: Recognize Rust raw strings (``r#"..."#``) and char
            literals, telling the latter apart from lifetimes.
    """

    line_comment: Optional[str] = None
    block_comment: Optional[tuple[str, str]] = None
    nested_blocks: bool = False
    quotes: tuple[str, ...] = ()
    raw_quotes: tuple[str, ...] = ()
    rust_literals: bool = False


_C_FAMILY = LanguageSyntax("//", ("/*", "*/"), quotes=('"', "'"))

SYNTAX: dict[str, LanguageSyntax] = {
    "Rust": LanguageSyntax(
        "//", ("/*", "*/"), nested_blocks=True, quotes=('"',), rust_literals=True
    ),
    "C": _C_FAMILY,
    "C++": _C_FAMILY,
    "Java": _C_FAMILY,
    "Go": LanguageSyntax("//", ("/*", "*/"), quotes=('"', "'"), raw_quotes=("`",)),
    "JavaScript": LanguageSyntax("//", ("/*", "*/"), quotes=('"', "'", "`")),
    "TypeScript": LanguageSyntax("//", ("/*", "*/"), quotes=('"', "'", "`")),
    "Assembly": LanguageSyntax(";", ("/*", "*/")),
    "Python": LanguageSyntax("#", quotes=('"""', "'''", '"', "'")),
    "Shell": LanguageSyntax("#", quotes=('"',), raw_quotes=("'",)),
    "TOML": LanguageSyntax("#", quotes=('"',)),
    "YAML": LanguageSyntax("#", quotes=('"',)),
}

_UNSAFE_RE = re.compile(r"\bunsafe\b")

_RUST_RAW_STRING = r'(?<!\w)b?r(?P<hashes>#*)"'
_RUST_CHAR = r"'(?:\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F]{1,6}\}|.)|[^\\'\n])'"


class _LineBuffer:
    """Collects the code text of each line that holds code."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.code: list[str] = []
        self.literal = False

    def end_line(self) -> None:
        line = "".join(self.code)
        if self.literal or line.strip():
            self.lines.append(line)
        self.code.clear()
        self.literal = False

    def skip(self, text: str, literal: bool) -> None:
        """Consume text that is not code, keeping its line breaks.

        Lines covered by a string literal still count as code, but the
        literal's content is left out of the code text.
        """
        for index, piece in enumerate(text.split("\n")):
            if index:
                self.end_line()
            if literal and piece.strip():
                self.literal = True


class CodeLexer:
    """Splits source text into code lines, leaving comments out.

    String and character literals are recognized before comment markers,
    so ``"src/*.rs"`` never opens a block comment.
    """

    def __init__(self, syntax: LanguageSyntax) -> None:
        self.syntax = syntax
        alternatives = [r"(?P<newline>\n)"]
        if syntax.line_comment:
            alternatives.append(f"(?P<line>{re.escape(syntax.line_comment)})")
        if syntax.block_comment:
            alternatives.append(f"(?P<block>{re.escape(syntax.block_comment[0])})")
        if syntax.rust_literals:
            alternatives.append(f"(?P<raw>{_RUST_RAW_STRING})")
            alternatives.append(f"(?P<char>{_RUST_CHAR})")
        if syntax.quotes:
            quotes = "|".join(re.escape(q) for q in syntax.quotes)
            alternatives.append(f"(?P<quote>{quotes})")
        if syntax.raw_quotes:
            quotes = "|".join(re.escape(q) for q in syntax.raw_quotes)
            alternatives.append(f"(?P<raw_quote>{quotes})")
        self._token_re = re.compile("|".join(alternatives))

    def code_lines(self, text: str) -> list[str]:
        """Return the code part of every line that holds code."""
        buffer = _LineBuffer()
        pos = 0
        while (match := self._token_re.search(text, pos)) is not None:
            buffer.code.append(text[pos:match.start()])
            pos = match.end()
            kind = match.lastgroup

            if kind == "newline":
                buffer.end_line()
            elif kind == "line":
                end = text.find("\n", pos)
                pos = len(text) if end == -1 else end
            elif kind == "block":
                end = self._block_end(text, pos)
                buffer.skip(text[pos:end], literal=False)
                pos = end
            elif kind == "char":
                buffer.code.append("''")
            else:
                opening = match.group()
                if kind == "raw":
                    closing, escapes = '"' + match.group("hashes"), False
                else:
                    closing, escapes = opening, kind == "quote"
                end = self._string_end(text, pos, closing, escapes)
                buffer.code.append(opening)
                buffer.skip(text[pos:end], literal=True)
                if end < len(text):
                    buffer.code.append(closing)
                pos = end + len(closing)

        buffer.code.append(text[pos:])
        buffer.end_line()
        return buffer.lines

    def _block_end(self, text: str, pos: int) -> int:
        """Return the position right after the block comment opened before ``pos``."""
        start, end = self.syntax.block_comment
        depth = 1
        while depth:
            close = text.find(end, pos)
            if close == -1:
                return len(text)
            if self.syntax.nested_blocks:
                opening = text.find(start, pos, close)
                if opening != -1:
                    depth += 1
                    pos = opening + len(start)
                    continue
            depth -= 1
            pos = close + len(end)
        return pos

    @staticmethod
    def _string_end(text: str, pos: int, closing: str, escapes: bool) -> int:
        """Return the position of the delimiter closing a literal started at ``pos``."""
        search = pos
        while True:
            end = text.find(closing, search)
            if end == -1:
                return len(text)
            if not escapes:
                return end
            backslashes = 0
            while end - backslashes - 1 >= pos and text[end - backslashes - 1] == "\\":
                backslashes += 1
            if backslashes % 2 == 0:
                return end
            search = end + 1


class SourceScanner(ABC):
    """Abstract base class for static code scanners."""

    @abstractmethod
    def scan(self, files: Iterable[Path]) -> LeafMetrics:
        """Measure a set of source files.

        Files that cannot be read are skipped and counted, never raised.

        Args:
            files: Files attributed to one package.

        Returns:
            LeafMetrics for those files.
        """
        ...


class LineCountScanner(SourceScanner):
    """Counts non-blank, non-comment lines and lines using Rust ``unsafe``.

    Words inside string literals never count as ``unsafe``.
    """

    def __init__(self) -> None:
        self._lexers = {language: CodeLexer(syntax) for language, syntax in SYNTAX.items()}

    def scan(self, files: Iterable[Path]) -> LeafMetrics:
        metrics = LeafMetrics()
        for path in sorted(files):
            language = EXT_TO_LANGUAGE.get(path.suffix)
            if language is None:
                continue
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning("Could not scan %s: %s", path, e)
                metrics.skipped_files += 1
                continue

            code_lines = self._lexers[language].code_lines(text)
            metrics.loc_by_language[language] = (
                metrics.loc_by_language.get(language, 0) + len(code_lines)
            )
            if language == "Rust":
                metrics.unsafe_loc += sum(
                    1 for line in code_lines if _UNSAFE_RE.search(line)
                )
        return metrics
