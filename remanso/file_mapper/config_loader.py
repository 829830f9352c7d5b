"""YAML configuration loading and validation.

This module finds and loads the project configuration (``remanso.yaml``).
The directory holding the config file is the project root: the content
directory, images directory and state file are all resolved against it.
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError, FilesystemError
from .models import DEFAULT_IGNORE, BlueskyConfig, FrontmatterMapping, PublisherConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "remanso.yaml"


class ConfigLoader:
    """Handles configuration file discovery, loading and validation.

    Configuration file structure:
        content_dir: "./content"
        publication_uri: "at://did:plc:abc/site.standard.publication/self"
        images_dir: "./public/images"
        site_url: "https://example.com"
        file_suffix: ".pub.md"
        path_prefix: "/posts"
        ignore: ["**/node_modules/**", "_*/**"]
        remove_index_from_slug: false
        strip_date_prefix: false
        frontmatter:
          title: "name"
          publish_date: "published"
          slug_field: "slug"
          text_content_field: "excerpt"
        bluesky:
          enabled: true
          max_age_days: 7
    """

    # Required top-level config fields
    REQUIRED_FIELDS = {'content_dir', 'publication_uri'}

    OPTIONAL_STRING_FIELDS = ('images_dir', 'pds_url', 'identity', 'site_url')

    MAPPING_FIELDS = (
        'title', 'description', 'publish_date', 'cover_image', 'tags', 'draft', 'slug_field',
        'text_content_field',
    )

    DEFAULTS = {
        'file_suffix': '.pub.md',
        'path_prefix': '/posts',
        'remove_index_from_slug': False,
        'strip_date_prefix': False,
    }

    @classmethod
    def find_config(cls, start_dir: Optional[str] = None) -> Optional[str]:
        """Walk up from start_dir looking for remanso.yaml.

        Returns:
            Absolute path of the config file, or None if no ancestor has one
        """
        current = os.path.abspath(start_dir or os.getcwd())
        while True:
            candidate = os.path.join(current, CONFIG_FILENAME)
            if os.path.isfile(candidate):
                logger.debug(f"Found config at {candidate}")
                return candidate
            parent = os.path.dirname(current)
            if parent == current:
                return None
            current = parent

    @classmethod
    def load(cls, config_path: str) -> PublisherConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            PublisherConfig with ``config_dir`` set to the file's directory

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(config_path, 'read', 'Configuration file not found')
        except PermissionError:
            raise FilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            raise ConfigError("Configuration file is empty")

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        config = cls._parse_config(config_dict)
        config.config_dir = os.path.dirname(os.path.abspath(config_path))
        return config

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> PublisherConfig:
        """Validate a raw configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        missing_fields = cls.REQUIRED_FIELDS - set(config_dict.keys())
        if missing_fields:
            raise ConfigError(
                f"Missing required fields: {', '.join(sorted(missing_fields))}"
            )

        content_dir = cls._required_string(config_dict, 'content_dir')
        publication_uri = cls._required_string(config_dict, 'publication_uri')
        if not publication_uri.startswith('at://'):
            raise ConfigError(
                f"Field 'publication_uri' must be an at:// URI, got '{publication_uri}'",
                'publication_uri'
            )

        optional: Dict[str, Optional[str]] = {}
        for name in cls.OPTIONAL_STRING_FIELDS:
            value = config_dict.get(name)
            optional[name] = str(value) if value not in (None, '') else None

        ignore = config_dict.get('ignore', list(DEFAULT_IGNORE))
        if ignore is None:
            ignore = []
        if not isinstance(ignore, list):
            raise ConfigError("Field 'ignore' must be a list", 'ignore')

        file_suffix = str(config_dict.get('file_suffix') or cls.DEFAULTS['file_suffix'])
        path_prefix = str(config_dict.get('path_prefix', cls.DEFAULTS['path_prefix']) or '')
        path_prefix = path_prefix.rstrip('/')

        return PublisherConfig(
            content_dir=content_dir,
            publication_uri=publication_uri,
            images_dir=optional['images_dir'],
            pds_url=optional['pds_url'],
            identity=optional['identity'],
            site_url=optional['site_url'].rstrip('/') if optional['site_url'] else None,
            ignore=[str(pattern) for pattern in ignore],
            file_suffix=file_suffix,
            path_prefix=path_prefix,
            remove_index_from_slug=bool(
                config_dict.get('remove_index_from_slug', cls.DEFAULTS['remove_index_from_slug'])
            ),
            strip_date_prefix=bool(
                config_dict.get('strip_date_prefix', cls.DEFAULTS['strip_date_prefix'])
            ),
            frontmatter=cls._parse_mapping(config_dict.get('frontmatter')),
            bluesky=cls._parse_bluesky(config_dict.get('bluesky')),
        )

    @staticmethod
    def _required_string(config_dict: Dict[str, Any], name: str) -> str:
        value = config_dict.get(name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"Field '{name}' must be a non-empty string", name)
        return value.strip()

    @classmethod
    def _parse_mapping(cls, raw: Any) -> FrontmatterMapping:
        if raw is None:
            return FrontmatterMapping()
        if not isinstance(raw, dict):
            raise ConfigError("Field 'frontmatter' must be a dictionary", 'frontmatter')

        unknown = set(raw.keys()) - set(cls.MAPPING_FIELDS)
        if unknown:
            logger.warning(f"Ignoring unknown frontmatter mapping keys: {', '.join(sorted(unknown))}")

        return FrontmatterMapping(**{
            name: str(raw[name]) for name in cls.MAPPING_FIELDS if raw.get(name)
        })

    @staticmethod
    def _parse_bluesky(raw: Any) -> BlueskyConfig:
        if raw is None:
            return BlueskyConfig()
        if not isinstance(raw, dict):
            raise ConfigError("Field 'bluesky' must be a dictionary", 'bluesky')
        try:
            max_age_days = int(raw.get('max_age_days', 7))
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid value: {str(e)}", 'bluesky.max_age_days')
        if max_age_days < 0:
            raise ConfigError(
                f"Field 'max_age_days' must not be negative, got {max_age_days}",
                'bluesky.max_age_days'
            )
        return BlueskyConfig(enabled=bool(raw.get('enabled', False)), max_age_days=max_age_days)
