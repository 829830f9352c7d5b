"""Unit tests for file_mapper.content_scanner module."""

import os

import pytest
from unittest.mock import patch

from remanso.file_mapper.content_scanner import (
    MAX_FILE_SIZE,
    ContentScanner,
    matches_ignore_pattern,
    read_text,
    write_text_atomic,
)
from remanso.file_mapper.errors import FilesystemError
from remanso.file_mapper.models import DEFAULT_IGNORE, FrontmatterMapping
from remanso.file_mapper.slug_resolver import SlugResolver


class TestMatchesIgnorePattern:
    """Test cases for matches_ignore_pattern()."""

    @pytest.mark.parametrize("path", [
        "node_modules/pkg/readme.pub.md",
        "docs/node_modules/pkg/readme.pub.md",
        ".obsidian/notes.pub.md",
        "_drafts/idea.pub.md",
    ])
    def test_default_patterns_match(self, path):
        assert matches_ignore_pattern(path, DEFAULT_IGNORE) is True

    @pytest.mark.parametrize("path", ["post.pub.md", "blog/post.pub.md", "blog/_partial.pub.md"])
    def test_default_patterns_do_not_match(self, path):
        assert matches_ignore_pattern(path, DEFAULT_IGNORE) is False

    def test_no_patterns(self):
        assert matches_ignore_pattern("anything.md", []) is False


class TestContentScanner:
    """Test cases for ContentScanner.scan()."""

    @pytest.fixture
    def content_dir(self, tmp_path):
        content = tmp_path / "content"
        (content / "blog").mkdir(parents=True)
        (content / "_drafts").mkdir()
        (content / "blog" / "b-post.pub.md").write_text("---\ntitle: B\n---\nBody B\n")
        (content / "blog" / "a-post.pub.md").write_text("# A\n\nBody A\n")
        (content / "blog" / "notes.md").write_text("# Not published\n")
        (content / "_drafts" / "wip.pub.md").write_text("# WIP\n")
        (content / "top.pub.md").write_text("---\ntitle: Top\n---\n")
        return content

    def test_scan_finds_matching_files_in_sorted_order(self, content_dir):
        scanner = ContentScanner(file_suffix=".pub.md", ignore_patterns=DEFAULT_IGNORE)

        documents = scanner.scan(str(content_dir))

        assert [d.relative_path for d in documents] == [
            "top.pub.md",
            "blog/a-post.pub.md",
            "blog/b-post.pub.md",
        ]

    def test_scan_builds_documents(self, content_dir):
        scanner = ContentScanner(file_suffix=".pub.md", ignore_patterns=DEFAULT_IGNORE)

        documents = {d.relative_path: d for d in scanner.scan(str(content_dir))}

        doc = documents["blog/b-post.pub.md"]
        assert doc.file_path == str(content_dir / "blog" / "b-post.pub.md")
        assert doc.slug == "blog/b-post.pub"
        assert doc.frontmatter.title == "B"
        assert doc.content == "Body B\n"
        assert doc.raw_content == "---\ntitle: B\n---\nBody B\n"
        assert documents["blog/a-post.pub.md"].frontmatter.title == "A"

    def test_unparseable_document_is_skipped(self, content_dir):
        broken = content_dir / "broken.pub.md"
        broken.write_text("---\ntitle: never closed\n")
        scanner = ContentScanner(file_suffix=".pub.md", ignore_patterns=DEFAULT_IGNORE)

        documents = scanner.scan(str(content_dir))

        assert "broken.pub.md" not in [d.relative_path for d in documents]
        assert scanner.skipped == [str(broken)]

    def test_skipped_documents_keep_path_slugs(self, content_dir):
        (content_dir / "blog").mkdir(exist_ok=True)
        (content_dir / "blog" / "Broken Post.pub.md").write_text("---\ntitle: never closed\n")
        scanner = ContentScanner(file_suffix=".pub.md", ignore_patterns=DEFAULT_IGNORE)

        scanner.scan(str(content_dir))

        assert scanner.skipped_relative == ["blog/Broken Post.pub.md"]
        assert scanner.skipped_slugs() == ["blog/broken-post.pub"]

    def test_slug_field_from_mapping(self, tmp_path):
        (tmp_path / "post.md").write_text("---\npermalink: /custom/\n---\n")
        mapping = FrontmatterMapping(slug_field="permalink")

        documents = ContentScanner(mapping=mapping).scan(str(tmp_path))

        assert documents[0].slug == "custom"

    def test_custom_slug_resolver(self, tmp_path):
        (tmp_path / "2024-01-15-post.md").write_text("# Post\n")
        scanner = ContentScanner(slug_resolver=SlugResolver(strip_date_prefix=True))

        assert scanner.scan(str(tmp_path))[0].slug == "post"

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(FilesystemError):
            ContentScanner().scan(str(tmp_path / "missing"))


class TestReadText:
    """Test cases for read_text()."""

    def test_preserves_crlf(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_bytes(b"a\r\nb")

        assert read_text(str(path)) == "a\r\nb"

    def test_rejects_oversized_file(self, tmp_path):
        path = tmp_path / "big.md"
        path.write_text("x")

        with patch('remanso.file_mapper.content_scanner.os.path.getsize', return_value=MAX_FILE_SIZE + 1):
            with pytest.raises(FilesystemError) as exc_info:
                read_text(str(path))

        assert "exceeds limit" in str(exc_info.value)

    def test_invalid_utf8_raises(self, tmp_path):
        path = tmp_path / "latin1.md"
        path.write_bytes(b"caf\xe9")

        with pytest.raises(FilesystemError):
            read_text(str(path))


class TestWriteTextAtomic:
    """Test cases for write_text_atomic()."""

    def test_replaces_content(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_text("old")

        write_text_atomic(str(path), "new\r\ncontent")

        assert path.read_bytes() == b"new\r\ncontent"
        assert os.listdir(tmp_path) == ["doc.md"]

    def test_failed_replace_cleans_up_temp_file(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_text("old")

        with patch('remanso.file_mapper.content_scanner.os.replace', side_effect=OSError("disk full")):
            with pytest.raises(FilesystemError) as exc_info:
                write_text_atomic(str(path), "new")

        assert exc_info.value.operation == "write"
        assert path.read_text() == "old"
        assert os.listdir(tmp_path) == ["doc.md"]
