"""
Unit Tests for the Dependency Matrix Model
Tests for: keys, triangle guard, toggling, attributes, totals, normalization
"""
import itertools
import random

import pytest

from depmatrix.core.exceptions import DuplicateIdError, NonEditableCellError, ValidationError
from depmatrix.schemas.matrix import Column, Row, StructuredMatrix
from depmatrix.services.matrix_model import (
    DEFAULT_ROWS,
    add_attribute,
    build_matrix,
    cell_key,
    compute_totals,
    count_dependencies,
    default_matrix,
    editable_cells,
    get_dependency,
    group_rows_by_category,
    is_editable,
    normalize_matrix,
    parse_cell_key,
    remove_attribute,
    rename_attribute,
    set_dependency,
    toggle_dependency,
)


@pytest.fixture
def abc_matrix() -> StructuredMatrix:
    """Rows A, B (category X) and C (category Y), no dependencies"""
    return build_matrix([(1, "A", "X"), (2, "B", "X"), (3, "C", "Y")])


@pytest.fixture
def wide_matrix() -> StructuredMatrix:
    return build_matrix([(i, f"Attr {i}", "X" if i % 2 else "Y") for i in range(1, 9)])


class TestCellKeys:
    """Test canonical dependency keys"""

    def test_cell_key_format(self):
        assert cell_key(1, 12) == "1_12"

    def test_parse_cell_key(self):
        assert parse_cell_key("10_14") == (10, 14)

    @pytest.mark.parametrize("key", ["1-2", "a_b", "1_2_3", "", "_2", "\u00b2_3", "1_\u00b2", "01_2", "1_02", " 1_2", "+1_2"])
    def test_parse_malformed_key_raises(self, key):
        with pytest.raises(ValidationError):
            parse_cell_key(key)

    def test_is_editable_only_upper_triangle(self):
        assert is_editable(1, 2) is True
        assert is_editable(2, 2) is False
        assert is_editable(3, 1) is False

    def test_editable_cells_lists_upper_triangle(self, abc_matrix):
        assert editable_cells(abc_matrix) == ["1_2", "1_3", "2_3"]


class TestSetDependency:
    """Test the single place the triangle rule is enforced"""

    def test_set_true_stores_key(self, abc_matrix):
        updated = set_dependency(abc_matrix, 1, 3, True)
        assert updated.dependencies == {"1_3": True}

    def test_set_false_removes_key(self, abc_matrix):
        updated = set_dependency(set_dependency(abc_matrix, 1, 3, True), 1, 3, False)
        assert updated.dependencies == {}

    @pytest.mark.parametrize("row_id,col_id", [(2, 2), (3, 1), (2, 1)])
    def test_set_outside_upper_triangle_raises(self, abc_matrix, row_id, col_id):
        with pytest.raises(NonEditableCellError) as exc_info:
            set_dependency(abc_matrix, row_id, col_id, True)
        assert exc_info.value.code == "CELL_NOT_EDITABLE"

    def test_set_does_not_mutate_input(self, abc_matrix):
        set_dependency(abc_matrix, 1, 2, True)
        assert abc_matrix.dependencies == {}

    def test_get_dependency_lower_triangle_reads_false(self, abc_matrix):
        # A stray lower-triangle key from outside must not read as a dependency
        abc_matrix.dependencies["2_1"] = True
        assert get_dependency(abc_matrix, 2, 1) is False


class TestToggleDependency:
    """Test toggling cells"""

    def test_toggle_scenario_totals(self, abc_matrix):
        """Toggle 1_2 on the A/B/C matrix and check every total"""
        updated = toggle_dependency(abc_matrix, 1, 2)
        totals = compute_totals(updated)

        assert updated.dependencies == {"1_2": True}
        assert totals.row_totals == {1: 1, 2: 0, 3: 0}
        assert totals.column_totals == {1: 0, 2: 1, 3: 0}
        assert totals.category_totals == {"X": 1, "Y": 0}

    def test_toggle_twice_restores_matrix(self, wide_matrix):
        seeded = set_dependency(wide_matrix, 2, 5, True)
        for key in editable_cells(seeded):
            r, c = parse_cell_key(key)
            assert toggle_dependency(toggle_dependency(seeded, r, c), r, c) == seeded

    def test_toggle_explicit_false_becomes_true(self, abc_matrix):
        abc_matrix.dependencies["1_2"] = False
        assert toggle_dependency(abc_matrix, 1, 2).dependencies["1_2"] is True

    def test_toggle_diagonal_raises(self, abc_matrix):
        with pytest.raises(NonEditableCellError):
            toggle_dependency(abc_matrix, 2, 2)

    def test_toggle_unknown_ids_is_noop(self, abc_matrix):
        assert toggle_dependency(abc_matrix, 1, 99) == abc_matrix

    def test_random_toggles_never_leave_upper_triangle(self, wide_matrix):
        rng = random.Random(1234)
        matrix = wide_matrix
        ids = [row.id for row in matrix.rows]
        for _ in range(300):
            r, c = sorted(rng.sample(ids, 2))
            matrix = toggle_dependency(matrix, r, c)

        for key, value in matrix.dependencies.items():
            r, c = parse_cell_key(key)
            if value:
                assert r < c


class TestAttributes:
    """Test adding, renaming and removing attributes"""

    def test_add_attribute_next_id(self, abc_matrix):
        updated = add_attribute(abc_matrix, "D", "Y")

        assert updated.rows[-1] == Row(id=4, name="D", category="Y")
        assert updated.columns[-1] == Column(id=4, name="4")
        assert updated.dependencies == abc_matrix.dependencies

    def test_add_attribute_to_empty_matrix_starts_at_one(self):
        updated = add_attribute(StructuredMatrix(), "First", "X")
        assert [row.id for row in updated.rows] == [1]
        assert [column.id for column in updated.columns] == [1]

    def test_add_attribute_requested_id_keeps_order(self, abc_matrix):
        sparse = remove_attribute(abc_matrix, 2)
        updated = add_attribute(sparse, "B2", "X", requested_id=2)

        assert [row.id for row in updated.rows] == [1, 2, 3]
        assert [column.id for column in updated.columns] == [1, 2, 3]

    def test_add_attribute_duplicate_id_raises(self, abc_matrix):
        before = abc_matrix.model_copy(deep=True)
        with pytest.raises(DuplicateIdError) as exc_info:
            add_attribute(abc_matrix, "E", "X", requested_id=2)

        assert exc_info.value.code == "DUPLICATE_ID"
        assert abc_matrix == before

    @pytest.mark.parametrize("requested_id", [0, -3])
    def test_add_attribute_non_positive_id_raises(self, abc_matrix, requested_id):
        with pytest.raises(ValidationError):
            add_attribute(abc_matrix, "E", "X", requested_id=requested_id)

    def test_add_attribute_blank_name_raises(self, abc_matrix):
        with pytest.raises(ValidationError):
            add_attribute(abc_matrix, "   ", "X")

    def test_remove_attribute_scenario(self, abc_matrix):
        toggled = toggle_dependency(abc_matrix, 1, 2)
        updated = remove_attribute(toggled, 2)

        assert [row.id for row in updated.rows] == [1, 3]
        assert [column.id for column in updated.columns] == [1, 3]
        assert updated.dependencies == {}

    def test_remove_attribute_cleans_every_key(self, wide_matrix):
        matrix = wide_matrix
        for r, c in itertools.combinations(range(1, 9), 2):
            matrix = set_dependency(matrix, r, c, True)

        updated = remove_attribute(matrix, 4)

        for key in updated.dependencies:
            assert 4 not in parse_cell_key(key)
        assert 4 not in [row.id for row in updated.rows]
        assert 4 not in [column.id for column in updated.columns]
        assert len(updated.dependencies) == len(list(itertools.combinations(range(7), 2)))

    def test_rename_attribute(self, abc_matrix):
        updated = rename_attribute(abc_matrix, 3, "Gamma")
        assert updated.rows[2].name == "Gamma"
        assert abc_matrix.rows[2].name == "C"

    def test_rename_missing_attribute_is_noop(self, abc_matrix):
        assert rename_attribute(abc_matrix, 42, "Nope") == abc_matrix


class TestTotals:
    """Test row, column and category aggregation"""

    def test_totals_zero_filled(self, abc_matrix):
        totals = compute_totals(abc_matrix)

        assert totals.row_totals == {1: 0, 2: 0, 3: 0}
        assert totals.column_totals == {1: 0, 2: 0, 3: 0}
        assert totals.category_totals == {"X": 0, "Y": 0}

    def test_totals_independent_of_insertion_order(self, wide_matrix):
        keys = ["1_2", "1_5", "2_8", "3_4", "6_7", "5_8"]
        expected = None
        for permutation in itertools.islice(itertools.permutations(keys), 50):
            candidate = wide_matrix.model_copy(deep=True)
            candidate.dependencies = {key: True for key in permutation}
            totals = compute_totals(candidate)
            if expected is None:
                expected = totals
            assert totals == expected

    def test_totals_ignore_lower_triangle_and_unknown_keys(self, abc_matrix):
        abc_matrix.dependencies = {
            "1_2": True,
            "2_1": True,
            "3_3": True,
            "1_9": True,
            "garbage": True,
            "2_3": False,
        }
        totals = compute_totals(abc_matrix)

        assert totals.row_totals == {1: 1, 2: 0, 3: 0}
        assert totals.column_totals == {1: 0, 2: 1, 3: 0}
        assert totals.category_totals == {"X": 1, "Y": 0}

    def test_totals_skip_non_ascii_digit_keys(self, abc_matrix):
        abc_matrix.dependencies = {"1_2": True, "\u00b2_3": True}
        totals = compute_totals(abc_matrix)

        assert totals.row_totals == {1: 1, 2: 0, 3: 0}
        assert totals.column_totals == {1: 0, 2: 1, 3: 0}

    def test_totals_count_zero_padded_duplicate_once(self, abc_matrix):
        abc_matrix.dependencies = {"1_2": True, "01_2": True}
        totals = compute_totals(abc_matrix)

        assert totals.row_totals == {1: 1, 2: 0, 3: 0}
        assert totals.category_totals == {"X": 1, "Y": 0}

    def test_remove_attribute_skips_malformed_keys(self, abc_matrix):
        abc_matrix.dependencies = {"1_2": True, "2_3": True, "\u00b2_3": True}
        updated = remove_attribute(abc_matrix, 2)

        assert updated.dependencies == {"\u00b2_3": True}

    def test_category_total_uses_row_category(self, abc_matrix):
        updated = toggle_dependency(abc_matrix, 2, 3)
        assert compute_totals(updated).category_totals == {"X": 1, "Y": 0}

    def test_count_dependencies(self, abc_matrix):
        updated = toggle_dependency(toggle_dependency(abc_matrix, 1, 2), 1, 3)
        assert count_dependencies(updated) == 2


class TestGroupingAndConstruction:
    """Test category grouping, seeding and normalization"""

    def test_group_rows_by_category_keeps_first_appearance_order(self):
        matrix = build_matrix([(1, "a", "Safety"), (2, "b", "Economy"), (3, "c", "Safety")])
        groups = group_rows_by_category(matrix)

        assert [group.category for group in groups] == ["Safety", "Economy"]
        assert [row.id for row in groups[0].rows] == [1, 3]

    def test_default_matrix(self):
        matrix = default_matrix()

        assert [(row.id, row.name, row.category) for row in matrix.rows] == DEFAULT_ROWS
        assert [column.name for column in matrix.columns] == ["1", "2", "3"]
        assert matrix.dependencies == {}

    def test_normalize_repairs_structure(self):
        matrix = StructuredMatrix(
            rows=[Row(id=3, name="C", category="Y"), Row(id=1, name="A", category="X"), Row(id=1, name="A2", category="X")],
            columns=[Column(id=1, name="1"), Column(id=7, name="7")],
            dependencies={"1_3": True, "3_1": True, "1_7": True, "1_1": True, "x": True, "01_3": False},
        )
        normalized = normalize_matrix(matrix)

        assert [row.id for row in normalized.rows] == [1, 3]
        assert normalized.rows[0].name == "A"
        assert [column.id for column in normalized.columns] == [1, 3]
        assert normalized.dependencies == {"1_3": True}

    @pytest.mark.parametrize("bad_key", ["\u00b2_3", "01_3", "1_03"])
    def test_normalize_drops_non_canonical_keys(self, abc_matrix, bad_key):
        abc_matrix.dependencies = {"1_2": True, bad_key: True}
        normalized = normalize_matrix(abc_matrix)

        assert normalized.dependencies == {"1_2": True}
        assert compute_totals(normalized).row_totals == {1: 1, 2: 0, 3: 0}

    def test_normalize_canonical_matrix_is_identity(self, abc_matrix):
        matrix = toggle_dependency(abc_matrix, 1, 3)
        assert normalize_matrix(matrix) == matrix
