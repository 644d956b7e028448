import unittest
from datetime import date

from app.parsing.models import HeaderOverrides
from app.rendering.resume_templates import (
    TEMPLATES,
    UnknownTemplateError,
    escape_html,
    generate_template_html,
    get_template,
    template_filename,
)

RESUME = """Jane Doe
jane@example.com
EXPERIENCE
Senior Engineer
Acme <Labs> & Co
2019 - Present
- Shipped "fast" APIs
SKILLS
Python, SQL
"""


class ResumeTemplateTests(unittest.TestCase):
    def test_six_templates_with_fixed_ids(self):
        self.assertEqual(
            [t.id for t in TEMPLATES],
            [
                "blue-sidebar",
                "purple-sidebar",
                "green-sidebar",
                "minimal-no-photo",
                "orange-sidebar",
                "teal-sidebar",
            ],
        )
        self.assertFalse(get_template("minimal-no-photo").has_photo)
        self.assertEqual(get_template("teal-sidebar").accent_color, "#16A085")

    def test_unknown_template_is_rejected(self):
        with self.assertRaises(UnknownTemplateError):
            generate_template_html("neon-sidebar", RESUME)

    def test_escape_html_covers_quotes(self):
        self.assertEqual(escape_html("<a href=\"x\">'&'</a>"), "&lt;a href=&quot;x&quot;&gt;&#x27;&amp;&#x27;&lt;/a&gt;")
        self.assertEqual(escape_html(None), "")

    def test_interpolated_values_are_escaped(self):
        document = generate_template_html("blue-sidebar", RESUME)
        self.assertIn("Acme &lt;Labs&gt; &amp; Co", document)
        self.assertIn("Shipped &quot;fast&quot; APIs", document)
        self.assertNotIn("<Labs>", document)
        self.assertIn("#4A90E2", document)

    def test_empty_sections_are_omitted(self):
        document = generate_template_html("green-sidebar", RESUME)
        self.assertIn("Work Experience", document)
        self.assertIn('<span class="skill-tag">Python</span>', document)
        self.assertNotIn('<div class="section-title">Education</div>', document)
        self.assertNotIn('<div class="section-title">Projects</div>', document)
        self.assertNotIn('<div class="sidebar-title">Languages</div>', document)

    def test_photo_only_for_photo_templates_with_url(self):
        photo_url = "https://cdn.example.com/me.png"
        with_photo = generate_template_html("blue-sidebar", RESUME, profile_photo_url=photo_url)
        self.assertIn(f'<img src="{photo_url}"', with_photo)
        self.assertNotIn('<div class="main-header">', with_photo)

        minimal = generate_template_html("minimal-no-photo", RESUME, profile_photo_url=photo_url)
        self.assertNotIn("<img", minimal)
        self.assertIn('<div class="main-header"><div class="main-name">Jane Doe</div>', minimal)

        no_url = generate_template_html("purple-sidebar", RESUME)
        self.assertNotIn("<img", no_url)
        self.assertIn('<div class="main-header">', no_url)

    def test_overrides_reach_the_document(self):
        document = generate_template_html(
            "orange-sidebar",
            RESUME,
            overrides=HeaderOverrides(name="Jane Q. Doe", professional_title="Staff Engineer"),
        )
        self.assertIn("<title>Resume - Jane Q. Doe</title>", document)
        self.assertIn('<div class="professional-title">Staff Engineer</div>', document)

    def test_social_link_only_links_web_addresses(self):
        bare = generate_template_html(
            "blue-sidebar", RESUME, overrides=HeaderOverrides(name="Jane", linkedin="linkedin.com/in/janedoe")
        )
        self.assertIn('<a href="https://linkedin.com/in/janedoe">linkedin.com/in/janedoe</a>', bare)

        full = generate_template_html(
            "blue-sidebar", RESUME, overrides=HeaderOverrides(name="Jane", linkedin="https://www.linkedin.com/in/jane")
        )
        self.assertIn('<a href="https://www.linkedin.com/in/jane">', full)

        script = generate_template_html(
            "blue-sidebar", RESUME, overrides=HeaderOverrides(name="Jane", linkedin="javascript:alert(1)")
        )
        self.assertNotIn("<a href", script)
        self.assertIn("<strong>Social Link:</strong> javascript:alert(1)</div>", script)

    def test_download_filename(self):
        self.assertEqual(
            template_filename(get_template("teal-sidebar"), on=date(2024, 3, 9)),
            "resume_teal-sidebar_2024-03-09.html",
        )
