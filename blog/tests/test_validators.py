from django.test import SimpleTestCase, override_settings

from blog.validators import ensure_publishable, has_meaningful_content, is_publishable, publish_problems
from utils.errors import InvalidInput

LONG_BODY = "<p>This is definitely more than twenty characters.</p>"


class PublishGuardTest(SimpleTestCase):
    def test_short_title_is_rejected(self):
        with self.assertRaises(InvalidInput) as cm:
            ensure_publishable("Hi", LONG_BODY)
        self.assertIn("title", cm.exception.details)
        self.assertNotIn("description", cm.exception.details)

    def test_short_content_is_rejected(self):
        with self.assertRaises(InvalidInput) as cm:
            ensure_publishable("A fine title", "<p>12345</p>")
        self.assertIn("description", cm.exception.details)

    def test_markup_does_not_count_towards_length(self):
        padded = "<p><strong><em>short</em></strong></p>&nbsp;&nbsp;&nbsp;&nbsp;"
        self.assertFalse(is_publishable("A fine title", padded))

    def test_title_is_trimmed_before_measuring(self):
        self.assertIn("title", publish_problems("  ab  ", LONG_BODY))

    def test_valid_content_passes(self):
        ensure_publishable("Hello world", LONG_BODY)
        self.assertTrue(is_publishable("Hello world", LONG_BODY))

    @override_settings(PUBLISH_MIN_CONTENT_LENGTH=3)
    def test_thresholds_come_from_settings(self):
        self.assertTrue(is_publishable("Hey", "<p>abc</p>"))


class MeaningfulContentTest(SimpleTestCase):
    def test_blank_editor_is_not_meaningful(self):
        self.assertFalse(has_meaningful_content("  ", "<p></p>", ""))

    def test_any_single_field_is_enough(self):
        self.assertTrue(has_meaningful_content("Title", "", ""))
        self.assertTrue(has_meaningful_content("", "<p>x</p>", ""))
        self.assertTrue(has_meaningful_content("", "", "https://cdn.example.com/a.png"))
