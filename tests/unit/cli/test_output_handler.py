"""Unit tests for cli.output module."""

import pytest
from rich.console import Console

from remanso.cli.models import DeletionInfo, PlanEntry, PublishSummary, SyncSummary
from remanso.cli.output import OutputHandler


@pytest.fixture
def handler():
    """OutputHandler recording to an in-memory console."""
    output = OutputHandler(verbosity=0, no_color=True)
    output.console = Console(record=True, no_color=True, width=120)
    return output


def text_of(handler):
    return handler.console.export_text()


class TestOutputHandlerInit:
    """Test cases for OutputHandler initialization."""

    def test_defaults(self):
        output = OutputHandler()

        assert output.verbosity == 0
        assert output.console.no_color is False

    def test_no_color(self):
        assert OutputHandler(no_color=True).console.no_color is True


class TestMessages:
    """Test cases for status messages and verbosity."""

    def test_info_hidden_at_verbosity_0(self, handler):
        handler.info("details")

        assert text_of(handler) == ""

    def test_info_shown_at_verbosity_1(self, handler):
        handler.verbosity = 1
        handler.info("details")
        handler.debug("debugging")

        output = text_of(handler)
        assert "details" in output
        assert "debugging" not in output

    def test_debug_shown_at_verbosity_2(self, handler):
        handler.verbosity = 2
        handler.debug("debugging")

        assert "debugging" in text_of(handler)

    def test_status_icons(self, handler):
        handler.success("ok")
        handler.error("bad")
        handler.warning("careful")

        output = text_of(handler)
        assert "✓ ok" in output
        assert "✗ bad" in output
        assert "⚠ careful" in output

    def test_spinner_context(self, handler):
        with handler.spinner("Working..."):
            handler.print("inside")

        assert "inside" in text_of(handler)


class TestPrintPlan:
    """Test cases for OutputHandler.print_plan()."""

    def test_plan_sections(self, handler, make_document):
        to_publish = [
            PlanEntry(document=make_document("a"), action="create", reason="new post"),
            PlanEntry(document=make_document("b"), action="update", reason="content changed",
                      at_uri="at://did:plc:abc/site.standard.document/b"),
        ]
        deletions = [DeletionInfo(at_uri="at://x/y/z", title="content/gone.pub.md")]
        orphans = [DeletionInfo(at_uri="at://x/y/o", title="Old post", origin="orphan")]

        handler.print_plan(to_publish, deletions, orphans, draft_count=2)

        output = text_of(handler)
        assert "Skipping 2 draft(s)" in output
        assert "2 document(s) to publish" in output
        assert "+ a.pub.md (new post)" in output
        assert "~ b.pub.md (content changed)" in output
        assert "1 deleted local file(s)" in output
        assert "- content/gone.pub.md" in output
        assert "1 unmatched PDS record(s)" in output
        assert "- Old post" in output


class TestSummaries:
    """Test cases for summary output."""

    def test_publish_summary_success(self, handler):
        handler.print_publish_summary(PublishSummary(created_count=2, updated_count=1, unchanged_count=4))

        output = text_of(handler)
        assert "Published" in output
        assert "Unchanged" in output
        assert "Publish completed successfully" in output

    def test_publish_summary_with_errors(self, handler):
        handler.print_publish_summary(PublishSummary(created_count=1, error_count=2))

        assert "Publish completed with 2 error(s)" in text_of(handler)

    def test_sync_summary(self, handler):
        handler.print_sync_summary(
            SyncSummary(matched_count=3, verified_count=2, unmatched_count=1), dry_run=True
        )

        output = text_of(handler)
        assert "Matched: 3 document(s)" in output
        assert "Unmatched PDS records: 1" in output
        assert "Dry run complete" in output
