import pytest

from pipeline.normalize import normalize_company, normalize_leadership
from pipeline.templates import (
    preview,
    render_template,
    relevance_band,
    format_timestamp,
    NO_SELECTION_PLACEHOLDER,
    CONTACT_NOT_FOUND,
)
from conftest import company_payload, leadership_payload


class TestEmailPreview:
    """The preview is rendered for the first selected contact only."""

    def setup_method(self):
        self.company = normalize_company(company_payload(), "Acme")
        self.leadership = normalize_leadership(leadership_payload(), self.company)

    def test_placeholder_without_selection(self):
        assert preview("professional", self.company, [], self.leadership) == NO_SELECTION_PLACEHOLDER

    def test_placeholder_without_company_or_leadership(self):
        selection = ["sarah@acme.com"]
        assert preview("professional", None, selection, self.leadership) == NO_SELECTION_PLACEHOLDER
        assert preview("professional", self.company, selection, None) == NO_SELECTION_PLACEHOLDER

    def test_custom_returns_text_verbatim(self):
        assert preview("custom", self.company, ["sarah@acme.com"], self.leadership, "X") == "X"
        assert preview("custom", self.company, ["nobody@else.com", "john@acme.com"], self.leadership, "X") == "X"
        assert preview("custom", self.company, ["sarah@acme.com"], self.leadership, "") == ""

    def test_professional_template(self):
        body = preview("professional", self.company, ["sarah@acme.com"], self.leadership)

        assert body.startswith("Dear Sarah Johnson,")
        assert "Acme Corp's impressive growth trajectory" in body
        assert "Acme Corp's continued expansion" in body
        assert body.endswith("Best regards")

    def test_friendly_template(self):
        body = preview("friendly", self.company, ["john@acme.com"], self.leadership)

        assert body.startswith("Hi John Smith,")
        assert "what Acme Corp is doing" in body
        assert body.endswith("Looking forward to connecting!")

    def test_only_first_selected_contact_is_used(self):
        body = preview("friendly", self.company, ["priya@acme.com", "john@acme.com"], self.leadership)
        assert "Priya Patel" in body
        assert "John Smith" not in body

    def test_unknown_first_contact(self):
        body = preview("professional", self.company, ["gone@acme.com", "john@acme.com"], self.leadership)
        assert body == CONTACT_NOT_FOUND

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            render_template("casual", "Acme", "Sam")


class TestDisplayHelpers:

    @pytest.mark.parametrize("score,band", [
        (0.95, "excellent"), (0.9, "excellent"), (0.75, "good"),
        (0.5, "fair"), (0.49, "low"), (0.0, "low"),
    ])
    def test_relevance_band(self, score, band):
        assert relevance_band(score) == band

    def test_format_timestamp(self):
        assert format_timestamp("2026-10-07T09:05:00+00:00") == "Oct 7, 2026, 9:05 AM"
        assert format_timestamp("2026-10-17T15:30:00Z") == "Oct 17, 2026, 3:30 PM"

    def test_format_timestamp_keeps_unparseable_values(self):
        assert format_timestamp("yesterday") == "yesterday"
