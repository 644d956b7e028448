import unittest
from io import BytesIO

from docx import Document

from app.parsing.parse import parse_bytes


class ParsingFacadeTests(unittest.TestCase):
    def test_parse_txt_bytes_keeps_text(self):
        content = "Jane Doe\n- Built APIs\nPython, SQL"
        parsed = parse_bytes(content.encode("utf-8"), "resume.txt")
        self.assertEqual(parsed.source_type, "txt")
        self.assertEqual(parsed.filename, "resume.txt")
        self.assertEqual(parsed.text, content)
        self.assertEqual(parsed.parsing_warnings, [])

    def test_parse_docx_bytes_extracts_paragraphs(self):
        document = Document()
        document.add_paragraph("Jane Doe")
        document.add_paragraph("")
        document.add_paragraph("Senior Engineer")
        buffer = BytesIO()
        document.save(buffer)

        parsed = parse_bytes(buffer.getvalue(), "resume.DOCX")
        self.assertEqual(parsed.source_type, "docx")
        self.assertEqual(parsed.text, "Jane Doe\nSenior Engineer")

    def test_empty_docx_is_reported_as_warning(self):
        buffer = BytesIO()
        Document().save(buffer)
        parsed = parse_bytes(buffer.getvalue(), "resume.docx")
        self.assertEqual(parsed.text, "")
        self.assertEqual(parsed.parsing_warnings, ["No extractable text found in DOCX."])

    def test_broken_pdf_is_reported_as_warning(self):
        parsed = parse_bytes(b"not a pdf", "resume.pdf")
        self.assertEqual(parsed.text, "")
        self.assertTrue(parsed.parsing_warnings)

    def test_unsupported_extension_raises(self):
        with self.assertRaises(NotImplementedError):
            parse_bytes(b"{}", "resume.json")


if __name__ == "__main__":
    unittest.main()
