"""
Test suite for result merging and counting helpers
Following TDD approach with AAA pattern and descriptive naming
"""

import copy
from mediawiki_adapter.json_merge import merge_json, count_query_results


class TestMergeJson:
    """Test suite for merge_json accumulator semantics"""

    def test_merge_json_into_none_returns_page(self):
        # Act & Assert
        assert merge_json(None, {'query': {'x': [1]}}) == {'query': {'x': [1]}}

    def test_merge_json_concatenates_arrays_in_order(self):
        # Act & Assert
        assert merge_json([1, 2], [3]) == [1, 2, 3]

    def test_merge_json_unions_object_keys_recursively(self):
        """
        Test that nested objects combine keys from both sides
        """
        # Arrange
        a = {'query': {'pages': {'1': {'title': 'A', 'links': [{'title': 'B'}]}}}}
        b = {'query': {'pages': {'1': {'links': [{'title': 'C'}]}, '2': {'title': 'D'}}}}

        # Act
        result = merge_json(a, b)

        # Assert
        assert result == {
            'query': {
                'pages': {
                    '1': {'title': 'A', 'links': [{'title': 'B'}, {'title': 'C'}]},
                    '2': {'title': 'D'},
                }
            }
        }

    def test_merge_json_with_scalar_pairs_takes_later_value(self):
        # Act & Assert
        assert merge_json({'batchcomplete': False}, {'batchcomplete': True}) == {'batchcomplete': True}
        assert merge_json({'n': [1]}, {'n': 'text'}) == {'n': 'text'}
        assert merge_json({'n': {'a': 1}}, {'n': [1]}) == {'n': [1]}

    def test_merge_json_chained_in_page_order_is_associative(self):
        """
        Test that ((p1 + p2) + p3) equals (p1 + (p2 + p3)) for page sequences
        """
        # Arrange
        p1 = {'query': {'x': [1], 'meta': {'a': 1}}}
        p2 = {'query': {'x': [2], 'meta': {'b': 2}}}
        p3 = {'query': {'x': [3], 'meta': {'a': 3}}}

        # Act
        left = merge_json(merge_json(copy.deepcopy(p1), copy.deepcopy(p2)), copy.deepcopy(p3))
        right = merge_json(copy.deepcopy(p1), merge_json(copy.deepcopy(p2), copy.deepcopy(p3)))

        # Assert
        assert left == right == {'query': {'x': [1, 2, 3], 'meta': {'a': 3, 'b': 2}}}

    def test_merge_json_never_aliases_merged_page(self):
        """
        Test that later merges into the accumulator leave earlier pages unchanged
        """
        # Arrange
        page = {'query': {'x': [3], 'meta': {'a': 1}}}
        acc = merge_json({'query': {}}, page)

        # Act
        merge_json(acc, {'query': {'x': [4], 'meta': {'b': 2}}})

        # Assert
        assert page == {'query': {'x': [3], 'meta': {'a': 1}}}
        assert acc == {'query': {'x': [3, 4], 'meta': {'a': 1, 'b': 2}}}


class TestCountQueryResults:
    """Test suite for the newly-observed item count heuristic"""

    def test_count_query_results_uses_first_array_in_query(self):
        # Arrange
        result = {'query': {'searchinfo': {'totalhits': 99}, 'search': [1, 2, 3], 'other': [1]}}

        # Act & Assert
        assert count_query_results(result) == 3

    def test_count_query_results_without_array_returns_zero(self):
        # Act & Assert
        assert count_query_results({'query': {'pages': {'1': {}}}}) == 0

    def test_count_query_results_without_query_returns_zero(self):
        # Act & Assert
        assert count_query_results({'batchcomplete': True}) == 0
        assert count_query_results([1, 2]) == 0
        assert count_query_results(None) == 0
