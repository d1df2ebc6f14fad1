"""
Tests for assembly of diagnostic reports.
"""

from typing import final
import unittest
from fieldguard.coercion import BOOL_SPELLINGS
from fieldguard.diagnostics import HEADER, Report, build_report
from fieldguard.errors import DecodeFailureKind, FieldContext, FieldHint
from fieldguard.value import TargetKind

INT_LABEL = 'a whole number (like 42)'
STRING_LABEL = "text (like 'hello')"

def _context(key: str, value: object, kind: TargetKind = TargetKind.INT,
             label: str = INT_LABEL) -> FieldContext:
    return FieldContext(key=key, raw_value=value, target_label=label,
                        target_kind=kind)

@final
class ReportTest(unittest.TestCase):
    """
    Tests for the builder of report text.
    """

    def test_section(self) -> None:
        """
        Test adding sections to a report.
        """

        report = Report()
        report.section('FIRST', ['a', '', 'b'])
        report.section('EMPTY', [])
        report.section('SECOND', ['c'])
        self.assertEqual(str(report), '\n'.join([
            HEADER, '', 'FIRST', '  a', '', '  b', '', 'SECOND', '  c'
        ]))

@final
class BuildReportTest(unittest.TestCase):
    """
    Tests for building diagnostic reports of failures.
    """

    def test_type_mismatch(self) -> None:
        """
        Test building a report for a text value of a number field.
        """

        report = build_report(DecodeFailureKind.TYPE_MISMATCH,
                              _context('age', '25'),
                              cause=TypeError('Expected a number, got str'))
        lines = report.split('\n')
        self.assertEqual(lines[0], HEADER)
        self.assertIn('DIAGNOSIS', lines)
        self.assertIn('COMPARISON', lines)
        self.assertIn('HOW TO FIX', lines)
        self.assertIn('TECHNICAL DETAILS', lines)
        self.assertNotIn('SUGGESTIONS', lines)
        self.assertIn("  Field: 'age'", lines)
        self.assertIn('  Problem: type mismatch', lines)
        self.assertIn(f'  Expected: {INT_LABEL}', lines)
        self.assertIn(f'  Actual: {STRING_LABEL}', lines)
        self.assertIn('  Value: 25', lines)
        self.assertIn("  1. Convert the text to a number: int('25') gives 25",
                      lines)
        self.assertIn('  Original error: TypeError: Expected a number, got str',
                      lines)

    def test_type_mismatch_hint(self) -> None:
        """
        Test building a report with a description of the field.
        """

        hint = FieldHint(description='Age in years', expected_format='number',
                         common_values=('18', '65'))
        report = build_report(DecodeFailureKind.TYPE_MISMATCH,
                              _context('age', 'old'), hint=hint)
        self.assertIn('  Field description: Age in years', report)
        self.assertIn('  Expected format: number', report)
        self.assertIn('  Common valid values: 18, 65', report)
        self.assertIn("int('old') gives an error", report)
        self.assertNotIn('TECHNICAL DETAILS', report)

    def test_templates(self) -> None:
        """
        Test selecting fixes based on the expected and actual types.
        """

        cases = [
            (_context('price', '9.99', TargetKind.DOUBLE, 'a decimal number'),
             "float('9.99') gives 9.99"),
            (_context('active', 1, TargetKind.BOOL, 'true or false'),
             "obj.get_bool('active')"),
            (_context('active', 'on', TargetKind.BOOL, 'true or false'),
             "'on'.lower() == 'true'"),
            (_context('at', 'noon', TargetKind.DATETIME, 'a date/time'),
             "dateutil.parser.isoparse('noon')"),
            (_context('code', 42, TargetKind.STRING, STRING_LABEL),
             "str(42) gives '42'"),
            (_context('tags', 'a', TargetKind.LIST, 'a list of items'),
             "obj.get_value('tags', lambda value: ...)")
        ]
        for context, expected in cases:
            with self.subTest(key=context.key):
                report = build_report(DecodeFailureKind.TYPE_MISMATCH,
                                      context)
                self.assertIn(expected, report)

    def test_missing_key(self) -> None:
        """
        Test building a report for a missing key with similar keys.
        """

        keys = ['user_name', 'user_email']
        report = build_report(DecodeFailureKind.MISSING_KEY,
                              _context('username', None),
                              available_keys=keys)
        lines = report.split('\n')
        self.assertIn('SUGGESTIONS', lines)
        self.assertNotIn('COMPARISON', lines)
        self.assertIn('  Exists in JSON: no', lines)
        self.assertIn('  Available keys: user_name, user_email', lines)
        self.assertIn("  Did you mean 'user_name'?", lines)
        self.assertIn("  4. Or use the most similar key: "
                      "username = json_field(name='user_name')", lines)

    def test_missing_key_convention(self) -> None:
        """
        Test building a report for a missing key that uses another naming
        convention in the data.
        """

        report = build_report(DecodeFailureKind.MISSING_KEY,
                              _context('user_name', None),
                              available_keys=['userName', 'id'])
        self.assertIn('Likely cause: naming convention mismatch', report)
        self.assertIn("The model uses 'user_name' (snake_case)", report)
        self.assertIn("The data uses 'userName' (camelCase)", report)
        self.assertIn("user_name = json_field(name='userName')", report)
        self.assertNotIn('Did you mean', report)

    def test_missing_key_case(self) -> None:
        """
        Test building a report for a missing key that only differs in case.
        """

        report = build_report(DecodeFailureKind.MISSING_KEY,
                              _context('userid', None),
                              available_keys=['userID'])
        self.assertIn('Likely cause: letter case mismatch', report)
        self.assertIn("userid = json_field(name='userID')", report)

    def test_missing_key_without_suggestions(self) -> None:
        """
        Test building a report for a missing key without similar keys.
        """

        report = build_report(DecodeFailureKind.MISSING_KEY,
                              _context('address', None), available_keys=[])
        self.assertIn('  Available keys: (none)', report)
        self.assertIn('the key is absent from the data', report)
        self.assertNotIn('Did you mean', report)

    def test_missing_keys(self) -> None:
        """
        Test building a report for multiple missing keys at once.
        """

        report = build_report(DecodeFailureKind.MISSING_KEY,
                              _context('userName, email', None),
                              available_keys=['user_name', 'mail'],
                              missing_keys=['userName', 'email'])
        self.assertIn("  Fields: 'userName', 'email'", report)
        self.assertIn("'userName': naming convention mismatch, the data uses "
                      "'user_name'", report)
        self.assertIn("'email': did you mean 'mail'?", report)
        self.assertIn('(userName, email)', report)

    def test_null_value(self) -> None:
        """
        Test building a report for a null value of a required field.
        """

        report = build_report(DecodeFailureKind.NULL_VALUE,
                              _context('age', None))
        self.assertIn('Problem: required value is null', report)
        self.assertIn('  Value: null', report)
        self.assertIn("obj.get_nullable_value('age', convert)", report)

    def test_unparsable_format(self) -> None:
        """
        Test building a report for a value with an unrecognized format.
        """

        report = build_report(DecodeFailureKind.UNPARSABLE_FORMAT,
                              _context('active', 'maybe', TargetKind.BOOL,
                                       'true or false'),
                              accepted=BOOL_SPELLINGS)
        self.assertIn('COMPARISON', report)
        self.assertIn('Accepted values for true or false:', report)
        for spelling in BOOL_SPELLINGS:
            self.assertIn(f'   - {spelling}', report)

    def test_list_item(self) -> None:
        """
        Test building a report for an invalid item of a list.
        """

        report = build_report(DecodeFailureKind.LIST_ITEM_MISMATCH,
                              _context('ids', [1, 'bad', 3]),
                              index=1, item='bad')
        self.assertIn('  Index: 1', report)
        self.assertIn('  Item value: bad', report)
        self.assertIn(f'  Item type: {STRING_LABEL}', report)
        self.assertIn("  Full list: [1, 'bad', 3]", report)
        self.assertIn('index 1', report)

    def test_not_a_list(self) -> None:
        """
        Test building reports for values that are not containers.
        """

        report = build_report(DecodeFailureKind.NOT_A_LIST,
                              _context('tags', 'a', TargetKind.LIST,
                                       'a list of items'))
        self.assertIn('Problem: value is not a list', report)
        self.assertIn(f'  Found: {STRING_LABEL}', report)

        report = build_report(DecodeFailureKind.NOT_AN_OBJECT,
                              _context('address', 5, TargetKind.OBJECT,
                                       'an object with keys and values'))
        self.assertIn('Problem: value is not an object', report)
        self.assertIn(f'  Found: {INT_LABEL}', report)

    def test_deterministic(self) -> None:
        """
        Test that identical input builds identical reports.
        """

        def build() -> str:
            return build_report(DecodeFailureKind.MISSING_KEY,
                                _context('username', None),
                                available_keys=['user_name', 'user_age'])

        self.assertEqual(build(), build())
