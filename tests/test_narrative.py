"""Tests for narrative prompt building, fence stripping and the model resource."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from covid_dagster.resources.narrative_resource import NarrativeResource
from covid_risk.narrative import SYSTEM_PROMPT, build_messages, strip_code_fences


def _completion(content: str) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestStripCodeFences:
    @pytest.mark.parametrize(
        "raw",
        [
            "```html\n<h2>Briefing</h2>\n```",
            "```HTML\n<h2>Briefing</h2>\n```\n",
            "```\n<h2>Briefing</h2>```",
            "  ```html\n<h2>Briefing</h2>\n```  ",
        ],
    )
    def test_removes_wrapping_fences(self, raw):
        assert strip_code_fences(raw) == "<h2>Briefing</h2>"

    def test_leading_fence_only(self):
        assert strip_code_fences("```html\n<p>cut off</p>") == "<p>cut off</p>"

    def test_plain_html_passes_through_untouched(self):
        raw = "\n<h2>Briefing</h2>\n"
        assert strip_code_fences(raw) == raw

    @pytest.mark.parametrize(
        "raw",
        [
            "```markdown\n<h2>Briefing</h2>\n```",
            "```xhtml\n<h2>Briefing</h2>\n```",
            "``` markdown\n<h2>Briefing</h2>\n```",
            "```html5\n<h2>Briefing</h2>\n```",
        ],
    )
    def test_other_language_fence_passes_through(self, raw):
        assert strip_code_fences(raw) == raw

    def test_inner_fence_is_not_wrapping(self):
        raw = "<p>a</p>\n<pre>```</pre>\n<p>b</p>"
        assert strip_code_fences(raw) == raw


class TestBuildMessages:
    def test_embeds_report_after_fixed_role_prompt(self):
        messages = build_messages("1. TX (Population: 30.0M)")

        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == SYSTEM_PROMPT
        assert "HTML" in messages[0]["content"]
        assert "1. TX (Population: 30.0M)" in messages[1]["content"]


class TestNarrativeResource:
    @patch("covid_dagster.resources.narrative_resource.OpenAI")
    def test_generate_briefing_single_call(self, MockOpenAI):
        client = MagicMock()
        client.chat.completions.create.return_value = _completion(
            "```html\n<h2>Executive Summary</h2>\n```"
        )
        MockOpenAI.return_value = client

        narrator = NarrativeResource(api_key="sk-test", model="test-model", temperature=0.1)
        html = narrator.generate_briefing("report body")

        assert html == "<h2>Executive Summary</h2>"
        MockOpenAI.assert_called_once_with(api_key="sk-test", base_url=None, timeout=120.0)
        client.chat.completions.create.assert_called_once()
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.1
        assert "report body" in kwargs["messages"][1]["content"]

    @patch("covid_dagster.resources.narrative_resource.OpenAI")
    def test_empty_content_becomes_empty_string(self, MockOpenAI):
        MockOpenAI.return_value.chat.completions.create.return_value = _completion(None)

        assert NarrativeResource(api_key="sk-test").generate_briefing("x") == ""

    @patch("covid_dagster.resources.narrative_resource.OpenAI")
    def test_api_failure_propagates(self, MockOpenAI):
        MockOpenAI.return_value.chat.completions.create.side_effect = RuntimeError("503")

        with pytest.raises(RuntimeError, match="503"):
            NarrativeResource(api_key="sk-test").generate_briefing("x")
