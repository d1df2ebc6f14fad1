"""
Tests for lenient conversions of raw JSON values.
"""

from datetime import datetime, timedelta, timezone
from typing import final
import unittest
from fieldguard.coercion import BOOL_SPELLINGS, DATETIME_FORMATS, \
    CoercionError, to_bool, to_datetime, to_float, to_int, to_str
from fieldguard.value import TargetKind

@final
class CoercionTest(unittest.TestCase):
    """
    Tests for coercion rules.
    """

    def test_to_str(self) -> None:
        """
        Test accepting text values.
        """

        self.assertEqual(to_str('hello'), 'hello')
        with self.assertRaises(TypeError):
            to_str(25)
        with self.assertRaises(TypeError):
            to_str(None)

    def test_to_int(self) -> None:
        """
        Test converting numbers to integers.
        """

        self.assertEqual(to_int(42), 42)
        self.assertEqual(to_int(99.0), 99)
        self.assertEqual(to_int(-2.7), -2)
        with self.assertRaises(TypeError):
            to_int('25')
        with self.assertRaises(TypeError):
            to_int(True)
        with self.assertRaises(ValueError):
            to_int(float('nan'))

    def test_to_float(self) -> None:
        """
        Test converting numbers to floating point numbers.
        """

        self.assertEqual(to_float(3), 3.0)
        self.assertIsInstance(to_float(3), float)
        self.assertEqual(to_float(2.5), 2.5)
        with self.assertRaises(TypeError):
            to_float('2.5')
        with self.assertRaises(TypeError):
            to_float(False)

    def test_to_bool(self) -> None:
        """
        Test converting booleans, numbers and strings to booleans.
        """

        self.assertTrue(to_bool(True))
        self.assertFalse(to_bool(False))
        self.assertTrue(to_bool(1))
        self.assertFalse(to_bool(0))
        self.assertTrue(to_bool(-5))
        self.assertTrue(to_bool('YES'))
        self.assertTrue(to_bool('True'))
        self.assertTrue(to_bool('1'))
        self.assertFalse(to_bool('no'))
        self.assertFalse(to_bool('FALSE'))
        self.assertFalse(to_bool('0'))

        with self.assertRaises(CoercionError) as context:
            to_bool('maybe')
        self.assertEqual(context.exception.value, 'maybe')
        self.assertEqual(context.exception.kind, TargetKind.BOOL)
        self.assertEqual(context.exception.accepted, BOOL_SPELLINGS)
        self.assertIsInstance(context.exception, ValueError)

        with self.assertRaises(CoercionError):
            to_bool(1.0)
        with self.assertRaises(CoercionError):
            to_bool(None)

    def test_to_datetime(self) -> None:
        """
        Test converting strings and timestamps to dates and times.
        """

        moment = datetime(2023, 10, 27, 10, 30, tzinfo=timezone.utc)
        self.assertIs(to_datetime(moment), moment)
        self.assertEqual(to_datetime('2023-10-27T10:30:00Z'), moment)
        self.assertEqual(to_datetime('2023-10-27T12:30:00+02:00'), moment)
        self.assertEqual(to_datetime('2023-10-27 10:30:00'),
                         datetime(2023, 10, 27, 10, 30))
        self.assertEqual(to_datetime(1698402600), moment)
        self.assertEqual(to_datetime(1698402600000), moment)
        self.assertEqual(to_datetime(1698402600500),
                         moment + timedelta(milliseconds=500))
        self.assertEqual(to_datetime(1698402600).tzinfo, timezone.utc)

        # Boundary between seconds and milliseconds
        with self.assertRaises(CoercionError):
            to_datetime(1_000_000_000_000)
        self.assertEqual(to_datetime(1_000_000_000_001).year, 2001)

        for value in ('yesterday', '', 1.5, True, [], None):
            with self.subTest(value=value):
                with self.assertRaises(CoercionError) as context:
                    to_datetime(value)
                self.assertEqual(context.exception.accepted, DATETIME_FORMATS)
