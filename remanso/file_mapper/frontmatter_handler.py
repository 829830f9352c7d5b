"""Frontmatter parsing and atUri rewriting for markdown documents.

This module reads the metadata block at the top of a markdown document and
normalizes it into a Frontmatter record. Three loosely related block styles
are accepted, each opened and closed by a three-character marker on its own
line:

    ---              +++                 ***
    title: Post      title = "Post"      title: Post
    ---              +++                 ***

The block is read by a small line-oriented state machine rather than a YAML
or TOML library, so quoting and fallback rules stay exactly the same for all
three styles. Documents without a block are accepted: the whole text becomes
the body and the title comes from the first level-1 heading.

The remote identity (``atUri``) is the only field the publisher ever writes
back; update_at_uri() edits that one line and leaves the rest of the file as
the author wrote it.
"""

import logging
import re
from datetime import datetime, UTC
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import FrontmatterError
from .models import FieldNameTable, Frontmatter, FrontmatterMapping, ParsedDocument

logger = logging.getLogger(__name__)

# Opening/closing marker -> key/value separator
DELIMITERS: Dict[str, str] = {
    "---": ":",
    "+++": "=",
    "***": ":",
}

DEFAULT_FIELD_NAMES: FieldNameTable = {
    "title": ("title",),
    "description": ("description",),
    "publish_date": ("publishDate", "pubDate", "date", "createdAt", "created_at"),
    "cover_image": ("ogImage", "coverImage"),
    "tags": ("tags",),
    "draft": ("draft",),
    "at_uri": ("atUri",),
}

AT_URI_FIELD = "atUri"

BOM = "\ufeff"

BLOCK_SCALAR_INDICATORS = {"|", "|-", "|+", ">", ">-", ">+"}

HEADING_PATTERN = re.compile(r'^#\s+(.+)$', re.MULTILINE)
LIST_ITEM_PATTERN = re.compile(r'^\s*-(?:\s+(.*))?$')
TOML_TABLE_PATTERN = re.compile(r'^\[\[?[^\]]+\]\]?$')


class FrontmatterHandler:
    """Parses metadata blocks and rewrites the atUri field.

    The delimiter set and the default field-name table are plain data passed
    to the constructor so tests (and unusual content collections) can
    substitute their own.

    Example:
        >>> handler = FrontmatterHandler()
        >>> parsed = handler.parse("---\\ntitle: Hello\\n---\\nBody")
        >>> parsed.frontmatter.title
        'Hello'
        >>> parsed.body
        'Body'
    """

    def __init__(
        self,
        delimiters: Optional[Mapping[str, str]] = None,
        field_names: Optional[FieldNameTable] = None,
    ):
        self.delimiters = dict(delimiters or DELIMITERS)
        self.field_names = dict(field_names or DEFAULT_FIELD_NAMES)

    def parse(
        self,
        content: str,
        mapping: Optional[FrontmatterMapping] = None,
        file_path: str = "<document>",
    ) -> ParsedDocument:
        """Parse raw document text into normalized metadata and body.

        Args:
            content: Full document text
            mapping: Optional field-name mapping from the project config
            file_path: Path used in error messages

        Returns:
            ParsedDocument with normalized and raw metadata plus the body

        Raises:
            FrontmatterError: If a block is opened but never closed, or a line
                inside the block cannot be read
        """
        split = self._split_block(content, file_path)
        if split is None:
            logger.debug(f"{file_path}: no metadata block, using defaults")
            return ParsedDocument(
                frontmatter=self._normalize({}, content, mapping),
                body=content,
                raw_frontmatter={},
                delimiter=None,
            )

        marker, block_lines, body = split
        raw = self._parse_block(block_lines, self.delimiters[marker], file_path)
        return ParsedDocument(
            frontmatter=self._normalize(raw, body, mapping),
            body=body,
            raw_frontmatter=raw,
            delimiter=marker,
        )

    def update_at_uri(self, content: str, at_uri: str, file_path: str = "<document>") -> str:
        """Insert or replace the atUri field, leaving every other line intact.

        The inserted line uses the line ending of the opening marker, so CRLF
        files stay CRLF. A leading byte order mark is kept in place.

        Args:
            content: Full document text
            at_uri: Record URI to store
            file_path: Path used in error messages

        Returns:
            Updated document text. A new ``---`` block is prepended when the
            document has none.

        Raises:
            FrontmatterError: If the existing block cannot be parsed
        """
        marker = self.parse(content, file_path=file_path).delimiter
        if marker is None:
            bom = BOM if content.startswith(BOM) else ""
            eol = "\r\n" if "\r\n" in content else "\n"
            return f'{bom}---{eol}{AT_URI_FIELD}: "{at_uri}"{eol}---{eol}{content[len(bom):]}'

        lines = content.split("\n")
        close_index = self._closing_index(lines, marker, file_path)
        separator = self.delimiters[marker]
        new_line = (
            f'{AT_URI_FIELD}: "{at_uri}"' if separator == ":"
            else f'{AT_URI_FIELD} = "{at_uri}"'
        )
        if lines[0].endswith("\r"):
            new_line += "\r"
        key_pattern = re.compile(rf'^{re.escape(AT_URI_FIELD)}\s*{re.escape(separator)}')

        for index in range(1, close_index):
            if key_pattern.match(lines[index]):
                lines[index] = new_line
                break
        else:
            lines.insert(close_index, new_line)

        return "\n".join(lines)

    def _opening_marker(self, lines: List[str]) -> Optional[str]:
        if not lines:
            return None
        first = lines[0].lstrip(BOM).rstrip()
        return first if first in self.delimiters else None

    @staticmethod
    def _closing_index(lines: List[str], marker: str, file_path: str) -> int:
        for index in range(1, len(lines)):
            if lines[index].rstrip() == marker:
                return index
        raise FrontmatterError(
            file_path, f"metadata block opened with '{marker}' is never closed", 1
        )

    def _split_block(self, content: str, file_path: str) -> Optional[Tuple[str, List[str], str]]:
        """Split text into (marker, block lines, body), or None without a block."""
        lines = content.split("\n")
        marker = self._opening_marker(lines)
        if marker is None:
            return None
        close_index = self._closing_index(lines, marker, file_path)
        return marker, lines[1:close_index], "\n".join(lines[close_index + 1:])

    def _parse_block(self, lines: List[str], separator: str, file_path: str) -> Dict[str, Any]:
        """Read the lines between the markers into a raw field dict."""
        if separator == "=":
            key_pattern = re.compile(r'^([A-Za-z_$][\w$.-]*)\s*=\s*(.*)$')
        else:
            # YAML needs whitespace after the colon, so "url:http://x" is not a key
            key_pattern = re.compile(r'^([A-Za-z_$][\w$.-]*)\s*:(?:\s+(.*)|\s*)$')
        raw: Dict[str, Any] = {}
        index = 0

        while index < len(lines):
            line = lines[index].rstrip("\r")
            stripped = line.strip()
            # Line numbers are 1-based and count the opening marker
            line_number = index + 2

            if not stripped or stripped.startswith("#"):
                index += 1
                continue
            if separator == "=" and TOML_TABLE_PATTERN.match(stripped):
                index += 1
                continue

            match = key_pattern.match(line)
            if not match:
                raise FrontmatterError(file_path, f"unrecognized line '{stripped}'", line_number)

            key = match.group(1)
            value = (match.group(2) or "").strip()
            index += 1

            if value in BLOCK_SCALAR_INDICATORS:
                block, index = self._collect_indented(lines, index)
                raw[key] = self._block_scalar(block, value)
            elif value == "":
                items, index = self._collect_list_items(lines, index)
                raw[key] = items if items is not None else ""
            elif value.startswith("[") and value.endswith("]"):
                raw[key] = self._inline_list(value)
            else:
                raw[key] = self._scalar(value)

        return raw

    @staticmethod
    def _is_continuation(line: str) -> bool:
        return bool(line) and (line[0] in " \t" or LIST_ITEM_PATTERN.match(line) is not None)

    def _collect_list_items(self, lines: List[str], start: int) -> Tuple[Optional[List[Any]], int]:
        """Collect ``- item`` lines following a key with an empty value.

        Indented lines that are not list items (nested mappings) are skipped.
        Returns None as the item list when no item follows.
        """
        items: List[Any] = []
        index = start
        while index < len(lines):
            line = lines[index].rstrip("\r")
            if not line.strip():
                lookahead = index + 1
                while lookahead < len(lines) and not lines[lookahead].strip():
                    lookahead += 1
                if lookahead < len(lines) and self._is_continuation(lines[lookahead]):
                    index = lookahead
                    continue
                break
            if not self._is_continuation(line):
                break
            item = LIST_ITEM_PATTERN.match(line)
            if item:
                items.append(self._scalar(item.group(1) or ""))
            index += 1
        return (items if items else None), index

    @staticmethod
    def _collect_indented(lines: List[str], start: int) -> Tuple[List[str], int]:
        """Collect the body of a block scalar with its common indent removed."""
        collected: List[str] = []
        indent: Optional[int] = None
        index = start
        while index < len(lines):
            line = lines[index].rstrip("\r")
            if not line.strip():
                collected.append("")
                index += 1
                continue
            if line[0] not in " \t":
                break
            if indent is None:
                indent = len(line) - len(line.lstrip())
            collected.append(line[indent:] if len(line) >= indent else line.lstrip())
            index += 1
        return collected, index

    @staticmethod
    def _block_scalar(block: List[str], indicator: str) -> str:
        """Render a literal (``|``) or folded (``>``) block with its chomping."""
        trailing_blank = 0
        while trailing_blank < len(block) and block[len(block) - 1 - trailing_blank] == "":
            trailing_blank += 1
        lines = block[:len(block) - trailing_blank]
        if not lines:
            return ""

        if indicator.startswith("|"):
            text = "\n".join(lines)
        else:
            text = lines[0]
            for previous, line in zip(lines, lines[1:]):
                if line == "":
                    text += "\n"
                elif previous == "":
                    text += line
                else:
                    text += " " + line

        if indicator.endswith("-"):
            return text
        if indicator.endswith("+"):
            return text + "\n" + "\n" * trailing_blank
        return text + "\n"

    def _inline_list(self, value: str) -> List[Any]:
        """Parse ``[a, "b, c", 'd']`` into a list of scalars."""
        items: List[str] = []
        current = ""
        quote: Optional[str] = None
        for char in value[1:-1]:
            if quote:
                current += char
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
                current += char
            elif char == ",":
                items.append(current)
                current = ""
            else:
                current += char
        items.append(current)
        return [self._scalar(item) for item in items if item.strip()]

    @staticmethod
    def _scalar(value: str) -> Any:
        """Strip one layer of matching quotes; map bare true/false to bool."""
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            return value[1:-1]
        if value == "true":
            return True
        if value == "false":
            return False
        return value

    def _resolve(self, raw: Dict[str, Any], canonical: str,
                 mapping: Optional[FrontmatterMapping]) -> Any:
        mapped = mapping.get(canonical) if mapping else None
        if mapped and mapped in raw:
            return raw[mapped]
        for name in self.field_names.get(canonical, ()):
            if name in raw:
                return raw[name]
        return None

    def _normalize(self, raw: Dict[str, Any], body: str,
                   mapping: Optional[FrontmatterMapping]) -> Frontmatter:
        """Apply the mapping, fallback names and defaults to raw fields."""
        title = self._resolve(raw, "title", mapping)
        if title in (None, ""):
            heading = HEADING_PATTERN.search(body)
            title = heading.group(1).strip() if heading else ""

        publish_date = self._resolve(raw, "publish_date", mapping)
        if publish_date in (None, ""):
            publish_date = datetime.now(UTC).date().isoformat()

        description = self._resolve(raw, "description", mapping)
        cover_image = self._resolve(raw, "cover_image", mapping)

        tags = self._resolve(raw, "tags", mapping)
        if isinstance(tags, list):
            tags = [str(tag) for tag in tags]
        elif isinstance(tags, str) and tags:
            tags = [tags]
        else:
            tags = None

        draft = self._resolve(raw, "draft", mapping)
        at_uri = self._resolve(raw, "at_uri", None)

        return Frontmatter(
            title=str(title),
            publish_date=str(publish_date),
            description=str(description) if description not in (None, "") else None,
            cover_image=str(cover_image) if cover_image not in (None, "") else None,
            tags=tags,
            draft=draft is True or (isinstance(draft, str) and draft.lower() == "true"),
            at_uri=str(at_uri) if at_uri not in (None, "") else None,
        )
