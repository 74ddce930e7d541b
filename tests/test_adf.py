import unittest

from sonar_jira.adf import bullet_list, doc, heading, link_text, list_item, paragraph, parse_reference_field, reference_doc, text


class TestReferenceField(unittest.TestCase):
    def test_reads_back_what_reference_doc_writes(self) -> None:
        self.assertEqual("AYx-123", parse_reference_field(reference_doc("AYx-123")))

    def test_strips_whitespace(self) -> None:
        self.assertEqual("AYx-1", parse_reference_field(doc(paragraph(text("  AYx-1 \n")))))

    def test_unusable_shapes_give_none(self) -> None:
        cases = [
            None,
            "AYx-1",
            {},
            {"type": "doc", "content": []},
            {"type": "doc", "content": ["oops"]},
            {"type": "doc", "content": [{"type": "paragraph"}]},
            {"type": "doc", "content": [{"type": "paragraph", "content": []}]},
            {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text"}]}]},
            {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": 42}]}]},
            doc(paragraph(text("   "))),
        ]
        for value in cases:
            with self.subTest(value=value):
                self.assertIsNone(parse_reference_field(value))


class TestBuilders(unittest.TestCase):
    def test_description_shape(self) -> None:
        d = doc(
            heading("Issue Details"),
            bullet_list([list_item(paragraph(text("a "), link_text("View", "https://x")))]),
        )
        self.assertEqual("doc", d["type"])
        self.assertEqual(1, d["version"])
        self.assertEqual({"level": 3}, d["content"][0]["attrs"])
        run = d["content"][1]["content"][0]["content"][0]["content"][1]
        self.assertEqual([{"type": "link", "attrs": {"href": "https://x"}}], run["marks"])


if __name__ == "__main__":
    unittest.main()
