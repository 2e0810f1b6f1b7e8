"""Tests for context composition and rendering."""

from prpilot_core.models import PriorComment, PullRequestSnapshot
from prpilot_core.utils.context import compose_context, render_context

ACTOR = "prpilot-bot"


def _snapshot(**overrides):
    fields = dict(
        number=42,
        title="Add widget cache",
        body="Caches widgets.",
        diff="+cache = {}",
        labels=["backend"],
        assignees=["carol"],
        reviewers=["alice"],
        comments=[
            PriorComment("alice", "Why a dict?"),
            PriorComment(ACTOR, "Earlier review from the bot"),
            PriorComment("dependabot[bot]", "Bumped deps", author_type="Bot"),
            PriorComment("dave", "LGTM"),
        ],
    )
    fields.update(overrides)
    return PullRequestSnapshot(**fields)


class TestComposeContext:
    def test_excludes_actor_comments(self):
        ctx = compose_context(_snapshot(), ACTOR)
        assert ACTOR not in [c.author for c in ctx.prior_comments]

    def test_excludes_bot_typed_comments(self):
        ctx = compose_context(_snapshot(), ACTOR)
        assert [c.author for c in ctx.prior_comments] == ["alice", "dave"]

    def test_excludes_actor_for_any_comment_list(self):
        comments = [PriorComment(ACTOR, f"note {i}") for i in range(5)]
        ctx = compose_context(_snapshot(comments=comments), ACTOR)
        assert ctx.prior_comments == []

    def test_copies_metadata(self):
        ctx = compose_context(_snapshot(), ACTOR)
        assert ctx.title == "Add widget cache"
        assert ctx.labels == ["backend"]
        assert ctx.assignees == ["carol"]
        assert ctx.reviewers == ["alice"]

    def test_diff_truncated(self):
        ctx = compose_context(_snapshot(diff="x" * 100), ACTOR, max_diff_chars=10)
        assert ctx.diff.startswith("x" * 10)
        assert "[diff truncated]" in ctx.diff

    def test_comment_truncated(self):
        ctx = compose_context(_snapshot(comments=[PriorComment("alice", "y" * 50)]), ACTOR, max_comment_chars=5)
        assert ctx.prior_comments[0].body == "yyyyy\n... [comment truncated]"

    def test_empty_instruction_becomes_none(self):
        assert compose_context(_snapshot(), ACTOR, instruction="").instruction is None

    def test_same_inputs_same_context(self):
        snapshot = _snapshot()
        assert compose_context(snapshot, ACTOR, "why?") == compose_context(snapshot, ACTOR, "why?")

    def test_snapshot_not_mutated(self):
        snapshot = _snapshot()
        compose_context(snapshot, ACTOR)
        assert len(snapshot.comments) == 4


class TestRenderContext:
    def test_sections_in_fixed_order(self):
        text = render_context(compose_context(_snapshot(), ACTOR, "check caching"))
        positions = [
            text.index("Add widget cache"),
            text.index("+cache = {}"),
            text.index("**Labels:** backend"),
            text.index("**Comments:**"),
            text.index("check caching"),
        ]
        assert positions == sorted(positions)

    def test_missing_description_placeholder(self):
        text = render_context(compose_context(_snapshot(body=""), ACTOR))
        assert "No description provided." in text

    def test_empty_lists_render_none(self):
        text = render_context(compose_context(_snapshot(labels=[], assignees=[], reviewers=[]), ACTOR))
        assert "**Labels:** None" in text
        assert "**Reviewers:** None" in text

    def test_no_comment_section_without_comments(self):
        text = render_context(compose_context(_snapshot(comments=[]), ACTOR))
        assert "**Comments:**" not in text

    def test_comment_lines_name_author(self):
        text = render_context(compose_context(_snapshot(), ACTOR))
        assert "- **alice:** Why a dict?" in text
