"""Tests for agent prompt rendering."""

from revguard_core.review.parser import ParsedComment, ParsedReview
from revguard_core.review.prompt import PROMPT_PREAMBLE, generate_agent_prompt, render_agent_prompt

REVIEW = """- The error handling needs work overall

src/auth/login.ts:42
+ const token = req.headers.auth;

This should validate the token format before use.
"""

EXPECTED = (
    "<details>\n"
    "<summary>Prompt for AI Agents</summary>\n"
    "\n"
    "~~~markdown\n"
    "Please address the comments from this code review:\n"
    "## Overall Comments\n"
    "- The error handling needs work overall\n"
    "\n"
    "## Individual Comments\n"
    "\n"
    "### Comment 1\n"
    " `src/auth/login.ts:42` \n"
    "```\n"
    "+ const token = req.headers.auth;\n"
    "```\n"
    "\n"
    "<issue_to_address>\n"
    "This should validate the token format before use.\n"
    "</issue_to_address>\n"
    "\n"
    "~~~\n"
    "</details>"
)


class TestGenerateAgentPrompt:
    def test_exact_layout(self):
        assert generate_agent_prompt(REVIEW) == EXPECTED

    def test_empty_input(self):
        assert generate_agent_prompt("") == ""

    def test_non_string_input(self):
        assert generate_agent_prompt(42) == ""

    def test_diagram_only_review_yields_nothing(self):
        assert generate_agent_prompt("- Add a mermaid diagram for the flow\n- Update the flowchart layout") == ""


class TestRenderAgentPrompt:
    def test_empty_review_renders_nothing(self):
        assert render_agent_prompt(ParsedReview()) == ""

    def test_overall_only(self):
        prompt = render_agent_prompt(ParsedReview(overall_comments=["Split the module into smaller parts"]))
        assert prompt.startswith("<details>\n<summary>Prompt for AI Agents</summary>\n\n~~~markdown\n")
        assert f"{PROMPT_PREAMBLE}\n## Overall Comments\n- Split the module into smaller parts\n\n~~~\n</details>" in prompt
        assert "## Individual Comments" not in prompt

    def test_comment_without_location_or_context(self):
        review = ParsedReview(individual_comments=[ParsedComment(issue_to_address="Handle the None case")])
        prompt = render_agent_prompt(review)
        assert "### Comment 1\n<issue_to_address>\nHandle the None case\n</issue_to_address>\n\n" in prompt
        assert "```" not in prompt

    def test_comments_are_numbered_in_order(self):
        review = ParsedReview(
            individual_comments=[
                ParsedComment(location="a.py:1", issue_to_address="first"),
                ParsedComment(location="b.py:2", issue_to_address="second"),
            ]
        )
        prompt = render_agent_prompt(review)
        assert prompt.index("### Comment 1\n `a.py:1` ") < prompt.index("### Comment 2\n `b.py:2` ")
