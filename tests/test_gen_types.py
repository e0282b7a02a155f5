"""
Value type invariants and the error taxonomy.
"""
import unittest

from stealthgen.gen_types import (
    ArtifactWriteError,
    AssembledScript,
    ConfigurationError,
    ExtractedPayload,
    ExtractedSignature,
    InvalidPayload,
    MissingInputError,
    MissingPreludeError,
    NoPayloadsError,
    UnitSkip,
)


class TestExtractedPayload(unittest.TestCase):

    def test_valid_payload(self):
        p = ExtractedPayload("a", "utils, { opts }", "{ utils.x(opts) }", True)
        self.assertEqual(p.convention, "with utils")
        self.assertEqual(ExtractedPayload("b", "", "{}").convention, "no args")

    def test_body_must_be_a_brace_block(self):
        for body in ("", "x", "{ x", "x }"):
            with self.subTest(body=body):
                with self.assertRaises(InvalidPayload):
                    ExtractedPayload("a", "", body)

    def test_body_must_be_balanced(self):
        with self.assertRaises(InvalidPayload):
            ExtractedPayload("a", "", "{ } }")

    def test_parameters_must_have_balanced_parentheses(self):
        """A payload with broken parameters would be a syntax error for the whole script."""
        with self.assertRaises(InvalidPayload):
            ExtractedPayload("a", "a = f(", "{}")
        with self.assertRaises(InvalidPayload):
            ExtractedPayload("a", "fn) below", "{}")

    def test_validation_follows_scan_mode(self):
        body = '{ s = "}" }'
        with self.assertRaises(InvalidPayload):
            ExtractedPayload("a", "", body, scan_mode="naive")
        self.assertEqual(ExtractedPayload("a", "", body, scan_mode="lexical").body, body)

    def test_from_signature(self):
        sig = ExtractedSignature(parameters="utils", body="{ utils.init() }")
        p = ExtractedPayload.from_signature("chrome.app", sig, True)
        self.assertEqual(p, ExtractedPayload("chrome.app", "utils", "{ utils.init() }", True))

    def test_payload_is_immutable(self):
        p = ExtractedPayload("a", "", "{}")
        with self.assertRaises(Exception):
            p.name = "b"


class TestResults(unittest.TestCase):

    def test_skip_message_names_unit(self):
        msg = UnitSkip("iframe.contentWindow", "call marker not found").message()
        self.assertIn('"iframe.contentWindow"', msg)
        self.assertIn("call marker not found", msg)

    def test_script_size_in_utf8_kilobytes(self):
        self.assertEqual(AssembledScript("x" * 2048, ("a",)).size_kb, 2.0)
        self.assertEqual(AssembledScript("é" * 512, ("a",)).size_kb, 1.0)
        self.assertEqual(len(AssembledScript("abc", ())), 3)


class TestErrors(unittest.TestCase):

    def test_fatal_errors_have_distinct_exit_codes(self):
        codes = [
            ConfigurationError.exit_code,
            MissingInputError.exit_code,
            MissingPreludeError.exit_code,
            NoPayloadsError.exit_code,
            ArtifactWriteError.exit_code,
        ]
        self.assertEqual(len(set(codes)), len(codes))
        self.assertNotIn(0, codes)
        self.assertNotIn(1, codes)

    def test_write_error_keeps_underlying_error(self):
        cause = PermissionError(13, "Permission denied")
        err = ArtifactWriteError("/out/evasions.js", cause)
        self.assertIn("Permission denied", str(err))
        self.assertIs(err.error, cause)


if __name__ == "__main__":
    unittest.main()
