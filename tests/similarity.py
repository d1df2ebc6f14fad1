"""
Tests for fuzzy key matching and naming convention analysis.
"""

from typing import final
import unittest
from fieldguard.similarity import Candidate, candidates, find_case_match, \
    find_convention_match, find_similar_keys, levenshtein, naming_style, \
    to_camel_case, to_pascal_case, to_snake_case

@final
class SimilarityTest(unittest.TestCase):
    """
    Tests for similarity matcher.
    """

    def test_levenshtein(self) -> None:
        """
        Test calculating the edit distance between strings.
        """

        self.assertEqual(levenshtein('', ''), 0)
        self.assertEqual(levenshtein('', 'abc'), 3)
        self.assertEqual(levenshtein('abc', ''), 3)
        self.assertEqual(levenshtein('kitten', 'sitting'), 3)
        self.assertEqual(levenshtein('username', 'user_name'), 1)
        self.assertEqual(levenshtein('name', 'name'), 0)

    def test_candidates(self) -> None:
        """
        Test comparing a key with available keys.
        """

        self.assertEqual(candidates('Name', ['first_name', 'nme', 'zip']), [
            Candidate('first_name', 6, True),
            Candidate('nme', 1, False)
        ])

        # Empty keys and targets do not contain anything
        self.assertEqual(candidates('zip_code', ['', 'zip']), [
            Candidate('zip', 5, True)
        ])
        self.assertEqual(candidates('', ['ab', 'abcd']), [
            Candidate('ab', 2, False)
        ])
        self.assertEqual(find_similar_keys('address', ['', 'id']), [])

    def test_find_similar_keys(self) -> None:
        """
        Test suggesting keys that are similar to a missing key.
        """

        keys = ['user_name', 'user_email', 'user_age']
        self.assertEqual(find_similar_keys('username', keys),
                         ['user_name', 'user_age'])
        self.assertEqual(find_similar_keys('email', keys), ['user_email'])
        self.assertEqual(find_similar_keys('USER_EMAIL', keys),
                         ['user_email'])
        self.assertEqual(find_similar_keys('address', keys), [])

        # Suggestions keep the order of the keys and are limited
        many = ['id_a', 'id_b', 'id', 'id_c', 'id_d']
        self.assertEqual(find_similar_keys('id', many),
                         ['id_a', 'id_b', 'id'])
        self.assertEqual(find_similar_keys('id', many, limit=1), ['id_a'])

    def test_case_conversions(self) -> None:
        """
        Test converting names between naming conventions.
        """

        self.assertEqual(to_camel_case('user_name'), 'userName')
        self.assertEqual(to_camel_case('UserName'), 'userName')
        self.assertEqual(to_camel_case('__'), '__')
        self.assertEqual(to_pascal_case('user_name'), 'UserName')
        self.assertEqual(to_pascal_case('userName'), 'UserName')
        self.assertEqual(to_snake_case('userName'), 'user_name')
        self.assertEqual(to_snake_case('UserName'), 'user_name')
        self.assertEqual(to_snake_case('user_name'), 'user_name')
        self.assertEqual(to_snake_case('_private'), '_private')

    def test_naming_style(self) -> None:
        """
        Test describing the naming convention of keys.
        """

        self.assertEqual(naming_style('user_name'), 'snake_case')
        self.assertEqual(naming_style('userName'), 'camelCase')
        self.assertEqual(naming_style('UserName'), 'PascalCase')
        self.assertEqual(naming_style('name'), 'lowercase')

    def test_find_convention_match(self) -> None:
        """
        Test finding keys that use another naming convention.
        """

        self.assertEqual(find_convention_match('userName', ['user_name']),
                         'user_name')
        self.assertEqual(find_convention_match('user_name', ['userName']),
                         'userName')
        self.assertEqual(find_convention_match('user_name', ['UserName']),
                         'UserName')
        self.assertIsNone(find_convention_match('username', ['user_name']))
        self.assertIsNone(find_convention_match('name', ['name']))

    def test_find_case_match(self) -> None:
        """
        Test finding keys that only differ in letter case.
        """

        self.assertEqual(find_case_match('userid', ['id', 'userID']),
                         'userID')
        self.assertIsNone(find_case_match('userid', ['userid']))
        self.assertIsNone(find_case_match('userid', ['user_id']))
