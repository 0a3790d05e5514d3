import base64
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.analysis.errors import (  # noqa: E402
    DecodeError,
    ExtractionTooShort,
    FileParsingError,
    UnsupportedFormat,
)
from app.parsing.parse import (  # noqa: E402
    DOCX_TOO_SHORT_MESSAGE,
    PDF_TOO_SHORT_MESSAGE,
    extract_text,
    parse_upload,
    resolve_source_type,
)

PDF_BYTES = (
    b"%PDF-1.4\n1 0 obj\n<< /Length 120 >>\nstream\n"
    b"BT /F1 12 Tf (Experienced Python developer) Tj (with AWS and Docker skills) Tj "
    b"(and ten years of backend experience) Tj ET\nendstream\nendobj\n%%EOF"
)
DOCX_BYTES = (
    b"PK\x03\x04\x14\x00word/document.xml"
    b"<w:document><w:body>"
    b"<w:p><w:r><w:t>Experienced Python developer</w:t></w:r></w:p>"
    b"<w:p><w:r><w:t>AWS</w:t></w:r></w:p>"
    b"<w:p><w:r><w:t>Docker and Kubernetes in production</w:t></w:r></w:p>"
    b"<w:p><w:r><w:t>ab</w:t></w:r></w:p>"
    b"</w:body></w:document>"
)
LONG_TEXT = "Senior backend engineer with Python, AWS, Docker and PostgreSQL experience."


def _data_uri(content: bytes, mime: str = "text/plain") -> str:
    return f"data:{mime};base64," + base64.b64encode(content).decode("ascii")


class ExtractTextTests(unittest.TestCase):
    def test_txt_is_returned_verbatim(self):
        text = "Zoë — naïve café résumé ✓\nSecond line"
        self.assertEqual(extract_text(text.encode("utf-8"), "resume.txt"), text)

    def test_txt_with_invalid_utf8_uses_replacement(self):
        self.assertEqual(extract_text(b"ok \xff ok", "resume.txt"), "ok \ufffd ok")

    def test_pdf_literals_are_joined(self):
        text = extract_text(PDF_BYTES, "resume.pdf")
        self.assertEqual(
            text,
            "Experienced Python developer with AWS and Docker skills and ten years of backend experience",
        )

    def test_pdf_escape_sequences_become_spaces(self):
        content = b"(Senior engineer\\nbuilding\\tAPIs) (for payment platforms at scale since 2015)"
        text = extract_text(content, "cv.pdf")
        self.assertEqual(text, "Senior engineer building APIs for payment platforms at scale since 2015")

    def test_pdf_without_enough_text_is_rejected(self):
        with self.assertRaises(ExtractionTooShort) as ctx:
            extract_text(b"%PDF-1.7 (Hi) (there)", "resume.pdf")
        self.assertEqual(str(ctx.exception), PDF_TOO_SHORT_MESSAGE)
        self.assertIsInstance(ctx.exception, FileParsingError)

    def test_docx_text_nodes_are_joined_and_short_nodes_dropped(self):
        text = extract_text(DOCX_BYTES, "resume.docx")
        self.assertEqual(text, "Experienced Python developer AWS Docker and Kubernetes in production")
        self.assertNotIn("ab", text.split())

    def test_docx_without_enough_text_is_rejected(self):
        with self.assertRaises(ExtractionTooShort) as ctx:
            extract_text(b"<w:t>Short</w:t>", "resume.docx")
        self.assertEqual(str(ctx.exception), DOCX_TOO_SHORT_MESSAGE)

    def test_unknown_suffix_is_unsupported(self):
        with self.assertRaises(UnsupportedFormat):
            extract_text(b"anything", "resume.doc")
        with self.assertRaises(UnsupportedFormat):
            extract_text(b"anything", "resume")

    def test_suffix_match_is_case_sensitive(self):
        with self.assertRaises(UnsupportedFormat):
            extract_text(PDF_BYTES, "RESUME.PDF")

    def test_source_type_follows_suffix(self):
        self.assertEqual(resolve_source_type("a.pdf"), "pdf")
        self.assertEqual(resolve_source_type("a.docx"), "docx")
        self.assertEqual(resolve_source_type("notes.v2.txt"), "txt")


class ParseUploadTests(unittest.TestCase):
    def test_txt_upload_is_decoded_and_sanitized(self):
        raw = ("  " + LONG_TEXT + "\x00\x07 🚀\n\n").encode("utf-8")
        document = parse_upload(_data_uri(raw), "resume.txt")
        self.assertEqual(document.text, LONG_TEXT)
        self.assertEqual(document.source_type, "txt")
        self.assertEqual(document.filename, "resume.txt")
        self.assertEqual(len(document.doc_id), 16)

    def test_same_text_gives_same_doc_id(self):
        first = parse_upload(_data_uri(LONG_TEXT.encode("utf-8")), "a.txt")
        second = parse_upload(_data_uri(LONG_TEXT.encode("utf-8")), "b.txt")
        self.assertEqual(first.doc_id, second.doc_id)

    def test_pdf_upload(self):
        document = parse_upload(_data_uri(PDF_BYTES, "application/pdf"), "resume.pdf")
        self.assertEqual(document.source_type, "pdf")
        self.assertIn("AWS and Docker", document.text)

    def test_short_txt_after_sanitizing_is_rejected(self):
        raw = ("Short " + "中" * 80).encode("utf-8")
        with self.assertRaises(ExtractionTooShort):
            parse_upload(_data_uri(raw), "resume.txt")

    def test_bad_transport_payload_is_a_decode_error(self):
        with self.assertRaises(DecodeError):
            parse_upload("data:text/plain;base64,%%%", "resume.txt")


if __name__ == "__main__":
    unittest.main()
