"""Internal link resolution between local documents.

Links written between documents point at local files (``../other-post.md``).
Once published those targets are meaningless, so note content has every
internal link rewritten to the target's note record URI, or flattened to its
text when the target has not been published yet.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence, Set

from ..file_mapper.models import Document
from ..pds_client.at_uri import note_uri_for
from ..pds_client.errors import InvalidAtUriError

logger = logging.getLogger(__name__)

# Plain links only: image embeds (!) and mentions (@) are never rewritten
LINK_PATTERN = re.compile(r'(?<![!@])\[([^\]]+)\]\(([^)]+)\)')

NON_LOCAL_PREFIXES = ("http://", "https://", "#", "mailto:")

_LEADING_RELATIVE = re.compile(r'^(?:\.\./|\./)+')
_TRAILING_SLASH = re.compile(r'/$')
_MARKDOWN_EXTENSION = re.compile(r'\.mdx?$')
_INDEX_SUFFIX = re.compile(r'/index$')


def is_local_target(target: str) -> bool:
    """Return True if a link target refers to a local document or file."""
    return not target.startswith(NON_LOCAL_PREFIXES)


def normalize_target(target: str) -> str:
    """Reduce a link target to a slug-like string.

    Examples:
        >>> normalize_target("../blog/my-post.md")
        'blog/my-post'
        >>> normalize_target("./guides/setup/index")
        'guides/setup'
    """
    normalized = _LEADING_RELATIVE.sub("", target)
    normalized = _TRAILING_SLASH.sub("", normalized)
    normalized = _MARKDOWN_EXTENSION.sub("", normalized)
    return _INDEX_SUFFIX.sub("", normalized)


def slug_matches(slug: str, normalized: str) -> bool:
    """Slug equality or a ``/``-bounded suffix match in either direction."""
    return (
        slug == normalized
        or slug.endswith(f"/{normalized}")
        or normalized.endswith(f"/{slug}")
    )


class LinkResolver:
    """Rewrites internal links and finds documents with stale links.

    Matching is done against document slugs in the order the documents are
    given; the first matching document wins.

    Example:
        >>> resolver = LinkResolver()
        >>> resolver.resolve_internal_links("See [intro](./intro.md)", documents)
        'See [intro](at://did:plc:abc/space.remanso.note/3k2)'
    """

    def find_target(self, target: str, documents: Sequence[Document]) -> Optional[Document]:
        """Return the first document whose slug matches a link target."""
        normalized = normalize_target(target)
        if not normalized:
            return None
        for document in documents:
            if slug_matches(document.slug, normalized):
                return document
        return None

    def resolve_internal_links(self, content: str, documents: Sequence[Document]) -> str:
        """Rewrite every internal link in content.

        - No matching document: link left unchanged
        - Match that is a draft or has no atUri yet: replaced by its text
        - Published match: target replaced by the matched note's at:// URI

        External links, anchors and mailto links are never touched.
        """
        def _replace(match: "re.Match[str]") -> str:
            text, target = match.group(1), match.group(2)
            if not is_local_target(target):
                return match.group(0)

            document = self.find_target(target, documents)
            if document is None:
                return match.group(0)

            at_uri = document.frontmatter.at_uri
            if document.frontmatter.draft or not at_uri:
                return text

            try:
                return f"[{text}]({note_uri_for(at_uri)})"
            except InvalidAtUriError:
                logger.warning(
                    f"Cannot link to {document.relative_path}: invalid atUri '{at_uri}'"
                )
                return text

        return LINK_PATTERN.sub(_replace, content)

    def links_to(self, content: str, slugs: Iterable[str]) -> bool:
        """Return True if content has a local link matching any of the slugs."""
        slug_list = list(slugs)
        for match in LINK_PATTERN.finditer(content):
            target = match.group(2)
            if not is_local_target(target):
                continue
            normalized = normalize_target(target)
            if normalized and any(slug_matches(slug, normalized) for slug in slug_list):
                return True
        return False

    def find_stale_documents(
        self,
        documents: Sequence[Document],
        new_slugs: Iterable[str],
        exclude_paths: Set[str],
    ) -> List[Document]:
        """Find published documents whose notes link to newly published slugs.

        Args:
            documents: All scanned documents
            new_slugs: Slugs of the documents created in this run
            exclude_paths: Absolute paths of documents already handled in
                this run

        Returns:
            Published, non-draft documents outside exclude_paths that contain
            a link matching one of new_slugs, in scan order
        """
        slug_list = list(new_slugs)
        if not slug_list:
            return []

        stale = [
            document for document in documents
            if document.file_path not in exclude_paths
            and document.frontmatter.at_uri
            and not document.frontmatter.draft
            and self.links_to(document.content, slug_list)
        ]
        logger.debug(f"{len(stale)} document(s) have links to newly published documents")
        return stale
