"""Unit tests for file_mapper.frontmatter_handler module."""

from datetime import date

import pytest

from remanso.file_mapper.errors import FrontmatterError
from remanso.file_mapper.frontmatter_handler import FrontmatterHandler
from remanso.file_mapper.models import FrontmatterMapping


@pytest.fixture
def handler():
    return FrontmatterHandler()


class TestParseBlockStyles:
    """Test cases for the three metadata block styles."""

    def test_parse_yaml_block(self, handler):
        content = """---
title: Hello World
description: "A first post"
publishDate: 2024-01-15
tags: [python, "atproto, pds", 'notes']
draft: false
---
Body text
"""
        result = handler.parse(content)

        assert result.delimiter == "---"
        assert result.frontmatter.title == "Hello World"
        assert result.frontmatter.description == "A first post"
        assert result.frontmatter.publish_date == "2024-01-15"
        assert result.frontmatter.tags == ["python", "atproto, pds", "notes"]
        assert result.frontmatter.draft is False
        assert result.body == "Body text\n"

    def test_parse_toml_block(self, handler):
        content = '+++\ntitle = "Hello"\ndate = "2024-02-01"\ndraft = true\n+++\nBody'

        result = handler.parse(content)

        assert result.delimiter == "+++"
        assert result.frontmatter.title == "Hello"
        assert result.frontmatter.publish_date == "2024-02-01"
        assert result.frontmatter.draft is True
        assert result.body == "Body"

    def test_toml_table_headers_are_skipped(self, handler):
        content = '+++\ntitle = "Hello"\n[extra]\nmood = "good"\n+++\nBody'

        result = handler.parse(content)

        assert result.raw_frontmatter == {"title": "Hello", "mood": "good"}

    def test_parse_asterisk_block(self, handler):
        content = "***\ntitle: Starred\n***\nBody"

        result = handler.parse(content)

        assert result.delimiter == "***"
        assert result.frontmatter.title == "Starred"

    def test_yaml_list_items(self, handler):
        content = "---\ntitle: T\ntags:\n  - one\n  - \"two\"\n\n  - three\n---\nBody"

        result = handler.parse(content)

        assert result.frontmatter.tags == ["one", "two", "three"]

    def test_single_string_tag_becomes_list(self, handler):
        result = handler.parse("---\ntags: solo\n---\n")

        assert result.frontmatter.tags == ["solo"]

    def test_literal_block_scalar(self, handler):
        content = "---\ndescription: |\n  line one\n  line two\ntitle: T\n---\n"

        result = handler.parse(content)

        assert result.frontmatter.description == "line one\nline two\n"
        assert result.frontmatter.title == "T"

    def test_folded_block_scalar_with_strip(self, handler):
        content = "---\ndescription: >-\n  folded\n  text\n---\n"

        result = handler.parse(content)

        assert result.frontmatter.description == "folded text"

    def test_comments_and_blank_lines_ignored(self, handler):
        content = "---\n# a comment\n\ntitle: T\n---\n"

        assert handler.parse(content).raw_frontmatter == {"title": "T"}

    def test_url_without_space_is_not_a_key(self, handler):
        """A colon must be followed by whitespace to separate a YAML key."""
        with pytest.raises(FrontmatterError):
            handler.parse("---\nurl:http://example.com\n---\n")

    def test_crlf_line_endings(self, handler):
        content = "---\r\ntitle: Windows\r\n---\r\nBody\r\n"

        result = handler.parse(content)

        assert result.frontmatter.title == "Windows"


class TestParseFallbacks:
    """Test cases for defaults and fallbacks."""

    def test_no_block_uses_heading_as_title(self, handler):
        result = handler.parse("# Hello\n\nSome text")

        assert result.delimiter is None
        assert result.raw_frontmatter == {}
        assert result.frontmatter.title == "Hello"
        assert result.body == "# Hello\n\nSome text"

    def test_no_block_no_heading_gives_empty_title(self, handler):
        assert handler.parse("just text").frontmatter.title == ""

    def test_missing_date_defaults_to_today(self, handler):
        result = handler.parse("---\ntitle: T\n---\n")

        assert date.fromisoformat(result.frontmatter.publish_date)

    @pytest.mark.parametrize("field_name", ["publishDate", "pubDate", "date", "createdAt", "created_at"])
    def test_alternate_date_fields(self, handler, field_name):
        result = handler.parse(f"---\n{field_name}: 2023-05-06\n---\n")

        assert result.frontmatter.publish_date == "2023-05-06"

    def test_date_field_order(self, handler):
        """publishDate wins over later alternates."""
        result = handler.parse("---\ndate: 2020-01-01\npublishDate: 2021-01-01\n---\n")

        assert result.frontmatter.publish_date == "2021-01-01"

    @pytest.mark.parametrize("field_name", ["ogImage", "coverImage"])
    def test_cover_image_fields(self, handler, field_name):
        result = handler.parse(f"---\n{field_name}: ./cover.png\n---\n")

        assert result.frontmatter.cover_image == "./cover.png"

    def test_draft_defaults_false(self, handler):
        assert handler.parse("---\ntitle: T\n---\n").frontmatter.draft is False

    def test_quoted_draft_string(self, handler):
        assert handler.parse('---\ndraft: "true"\n---\n').frontmatter.draft is True

    def test_at_uri_is_read(self, handler):
        uri = "at://did:plc:abc/site.standard.document/3k2"

        result = handler.parse(f'---\natUri: "{uri}"\n---\n')

        assert result.frontmatter.at_uri == uri


class TestParseMapping:
    """Test cases for the configurable field mapping."""

    def test_mapped_field_used_when_present(self, handler):
        mapping = FrontmatterMapping(title="name", publish_date="published")

        result = handler.parse("---\nname: Mapped\npublished: 2022-03-04\ntitle: Ignored\n---\n", mapping)

        assert result.frontmatter.title == "Mapped"
        assert result.frontmatter.publish_date == "2022-03-04"

    def test_default_name_used_when_mapped_field_absent(self, handler):
        mapping = FrontmatterMapping(title="name")

        result = handler.parse("---\ntitle: Default\n---\n", mapping)

        assert result.frontmatter.title == "Default"

    def test_custom_field_name_table(self):
        handler = FrontmatterHandler(field_names={"title": ("heading",)})

        result = handler.parse("---\nheading: Custom\ntitle: Other\n---\n")

        assert result.frontmatter.title == "Custom"


class TestParseErrors:
    """Test cases for malformed blocks."""

    def test_unterminated_block_raises(self, handler):
        with pytest.raises(FrontmatterError) as exc_info:
            handler.parse("---\ntitle: T\nBody without close", file_path="post.md")

        assert exc_info.value.file_path == "post.md"
        assert "never closed" in str(exc_info.value)

    def test_unrecognized_line_reports_line_number(self, handler):
        with pytest.raises(FrontmatterError) as exc_info:
            handler.parse("---\ntitle: T\n!!! nonsense\n---\n")

        assert exc_info.value.line_number == 3


class TestUpdateAtUri:
    """Test cases for FrontmatterHandler.update_at_uri()."""

    URI = "at://did:plc:abc/site.standard.document/3k2"

    def test_inserts_field_before_closing_marker(self, handler):
        content = "---\ntitle: Hello\ntags: [a, b]\n---\nBody\n"

        result = handler.update_at_uri(content, self.URI)

        assert result == f'---\ntitle: Hello\ntags: [a, b]\natUri: "{self.URI}"\n---\nBody\n'

    def test_replaces_existing_field(self, handler):
        content = '---\natUri: "at://old/site.standard.document/1"\ntitle: Hello\n---\nBody'

        result = handler.update_at_uri(content, self.URI)

        assert result == f'---\natUri: "{self.URI}"\ntitle: Hello\n---\nBody'

    def test_toml_block_uses_equals(self, handler):
        result = handler.update_at_uri('+++\ntitle = "T"\n+++\nBody', self.URI)

        assert f'atUri = "{self.URI}"' in result

    def test_prepends_block_when_missing(self, handler):
        result = handler.update_at_uri("# Hello", self.URI)

        assert result == f'---\natUri: "{self.URI}"\n---\n# Hello'

    def test_rewrite_preserves_every_other_field(self, handler):
        """Parsing after a rewrite yields the same fields plus the atUri."""
        content = """---
title: "Quoted: title"
description: >
  folded
  text
tags:
  - one
  - two
theme: dark
---
# Heading

Body
"""
        before = handler.parse(content)

        after = handler.parse(handler.update_at_uri(content, self.URI))

        expected = dict(before.raw_frontmatter)
        expected["atUri"] = self.URI
        assert after.raw_frontmatter == expected
        assert after.body == before.body
        assert after.frontmatter.at_uri == self.URI

    def test_unterminated_block_raises(self, handler):
        with pytest.raises(FrontmatterError):
            handler.update_at_uri("---\ntitle: T\n", self.URI)

    def test_crlf_block_keeps_crlf(self, handler):
        content = "---\r\ntitle: Hello\r\n---\r\nBody\r\n"

        result = handler.update_at_uri(content, self.URI)

        assert result == f'---\r\ntitle: Hello\r\natUri: "{self.URI}"\r\n---\r\nBody\r\n'
        assert "\n" not in result.replace("\r\n", "")

    def test_crlf_document_without_block(self, handler):
        result = handler.update_at_uri("# Hello\r\n", self.URI)

        assert result == f'---\r\natUri: "{self.URI}"\r\n---\r\n# Hello\r\n'

    def test_byte_order_mark_before_block(self, handler):
        content = "\ufeff---\ntitle: Hello\n---\nBody"

        result = handler.update_at_uri(content, self.URI)

        assert result == f'\ufeff---\ntitle: Hello\natUri: "{self.URI}"\n---\nBody'
        assert result.count("---") == 2

    def test_byte_order_mark_without_block(self, handler):
        result = handler.update_at_uri("\ufeff# Hello", self.URI)

        assert result == f'\ufeff---\natUri: "{self.URI}"\n---\n# Hello'

    def test_unreadable_block_line_raises(self, handler):
        with pytest.raises(FrontmatterError):
            handler.update_at_uri("---\n: not a key\n---\nBody", self.URI)


class TestByteOrderMark:
    """Test cases for documents starting with a byte order mark."""

    def test_block_after_bom_is_parsed(self, handler):
        result = handler.parse("\ufeff---\ntitle: Hello\n---\nBody")

        assert result.delimiter == "---"
        assert result.frontmatter.title == "Hello"
        assert result.body == "Body"
