"""Unit tests for file_mapper.config_loader module."""

import os

import pytest

from remanso.file_mapper.config_loader import CONFIG_FILENAME, ConfigLoader
from remanso.file_mapper.errors import ConfigError, FilesystemError
from remanso.file_mapper.models import DEFAULT_IGNORE, PublisherConfig

PUBLICATION = "at://did:plc:abc/site.standard.publication/self"


class TestConfigLoaderLoad:
    """Test cases for ConfigLoader.load() method."""

    def test_load_valid_config_with_all_fields(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text(f"""
content_dir: ./content
publication_uri: "{PUBLICATION}"
images_dir: ./public/images
pds_url: https://pds.example.com
identity: alice.example.com
site_url: https://example.com/
file_suffix: .md
path_prefix: /notes/
ignore:
  - "drafts/**"
remove_index_from_slug: true
strip_date_prefix: true
frontmatter:
  title: name
  slug_field: slug
  text_content_field: excerpt
bluesky:
  enabled: true
  max_age_days: 3
""")

        result = ConfigLoader.load(str(config_file))

        assert isinstance(result, PublisherConfig)
        assert result.config_dir == str(tmp_path)
        assert result.content_dir == "./content"
        assert result.content_path == str(tmp_path / "content")
        assert result.images_path == str(tmp_path / "public" / "images")
        assert result.publication_uri == PUBLICATION
        assert result.pds_url == "https://pds.example.com"
        assert result.identity == "alice.example.com"
        assert result.site_url == "https://example.com"
        assert result.file_suffix == ".md"
        assert result.path_prefix == "/notes"
        assert result.ignore == ["drafts/**"]
        assert result.remove_index_from_slug is True
        assert result.strip_date_prefix is True
        assert result.frontmatter.title == "name"
        assert result.frontmatter.slug_field == "slug"
        assert result.frontmatter.text_content_field == "excerpt"
        assert result.frontmatter.description is None
        assert result.bluesky.enabled is True
        assert result.bluesky.max_age_days == 3

    def test_load_minimal_config_applies_defaults(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text(f"content_dir: content\npublication_uri: {PUBLICATION}\n")

        result = ConfigLoader.load(str(config_file))

        assert result.file_suffix == ".pub.md"
        assert result.path_prefix == "/posts"
        assert result.ignore == DEFAULT_IGNORE
        assert result.images_path is None
        assert result.site_url is None
        assert result.bluesky.enabled is False
        assert result.bluesky.max_age_days == 7

    def test_empty_ignore_list(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text(f"content_dir: c\npublication_uri: {PUBLICATION}\nignore:\n")

        assert ConfigLoader.load(str(config_file)).ignore == []

    def test_missing_required_fields(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("images_dir: ./images\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert "content_dir" in str(exc_info.value)
        assert "publication_uri" in str(exc_info.value)

    def test_publication_uri_must_be_at_uri(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("content_dir: c\npublication_uri: https://example.com\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert exc_info.value.config_field == "publication_uri"

    def test_ignore_must_be_list(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text(f"content_dir: c\npublication_uri: {PUBLICATION}\nignore: '*.md'\n")

        with pytest.raises(ConfigError):
            ConfigLoader.load(str(config_file))

    def test_negative_max_age_days(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text(
            f"content_dir: c\npublication_uri: {PUBLICATION}\nbluesky:\n  max_age_days: -1\n"
        )

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert exc_info.value.config_field == "bluesky.max_age_days"

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("content_dir: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert "Invalid YAML" in str(exc_info.value)

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")

        with pytest.raises(ConfigError):
            ConfigLoader.load(str(config_file))

    def test_non_dictionary(self, tmp_path):
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(config_file))

        assert "list" in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FilesystemError):
            ConfigLoader.load(str(tmp_path / CONFIG_FILENAME))


class TestConfigLoaderFindConfig:
    """Test cases for ConfigLoader.find_config()."""

    def test_finds_config_in_ancestor(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("")
        nested = tmp_path / "content" / "blog"
        nested.mkdir(parents=True)

        assert ConfigLoader.find_config(str(nested)) == os.path.join(str(tmp_path), CONFIG_FILENAME)

    def test_nearest_config_wins(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("")
        inner = tmp_path / "site"
        inner.mkdir()
        (inner / CONFIG_FILENAME).write_text("")

        assert ConfigLoader.find_config(str(inner)) == os.path.join(str(inner), CONFIG_FILENAME)

    def test_returns_none_without_config(self, tmp_path):
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        result = ConfigLoader.find_config(str(nested))

        assert result is None or not result.startswith(str(tmp_path))
