"""
Dependency Matrix Model
=======================

Pure functions over ``StructuredMatrix``. Every mutation returns a new matrix
and leaves its argument untouched, so a caller can apply a change, try to
persist it, and keep the previous value if the save fails.

Only the upper triangle (row ID < column ID) is editable and counted.
``set_dependency`` is the single place that rule is enforced.
"""

import re
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from depmatrix.core.exceptions import (
    DuplicateIdError,
    NonEditableCellError,
    ValidationError,
)
from depmatrix.schemas.matrix import (
    CategoryGroup,
    Column,
    MatrixTotals,
    Row,
    StructuredMatrix,
)

DEFAULT_CATEGORY = "Technical/Ops"

# Seed rows for a newly created matrix
DEFAULT_ROWS: List[Tuple[int, str, str]] = [
    (1, "Availability", DEFAULT_CATEGORY),
    (2, "Preference for long term strategy", DEFAULT_CATEGORY),
    (3, "Logistic", DEFAULT_CATEGORY),
]


# ==================== Keys ====================

# ASCII decimal IDs without leading zeros
CELL_KEY_PATTERN = re.compile(r"(0|[1-9][0-9]*)_(0|[1-9][0-9]*)")


def cell_key(row_id: int, col_id: int) -> str:
    """Canonical dependency key: decimal IDs joined by an underscore"""
    return f"{int(row_id)}_{int(col_id)}"


def parse_cell_key(key: str) -> Tuple[int, int]:
    """Split a ``"{rowId}_{colId}"`` key back into its two IDs"""
    match = CELL_KEY_PATTERN.fullmatch(key) if isinstance(key, str) else None
    if match is None:
        raise ValidationError(f"Malformed dependency key: {key!r}", field="cellKey")
    return int(match.group(1)), int(match.group(2))


def is_editable(row_id: int, col_id: int) -> bool:
    """Upper-triangle test; diagonal and lower-triangle cells are blocked"""
    return row_id < col_id


def editable_cells(matrix: StructuredMatrix) -> List[str]:
    """Keys of every upper-triangle cell, row-major in ID order"""
    ids = sorted(row.id for row in matrix.rows)
    return [cell_key(r, c) for i, r in enumerate(ids) for c in ids[i + 1:]]


# ==================== Lookups ====================

def row_ids(matrix: StructuredMatrix) -> List[int]:
    return [row.id for row in matrix.rows]


def find_row(matrix: StructuredMatrix, row_id: int) -> Optional[Row]:
    for row in matrix.rows:
        if row.id == row_id:
            return row
    return None


def find_column(matrix: StructuredMatrix, col_id: int) -> Optional[Column]:
    for column in matrix.columns:
        if column.id == col_id:
            return column
    return None


def get_dependency(matrix: StructuredMatrix, row_id: int, col_id: int) -> bool:
    """Dependency flag for a cell. Absent keys and non-editable cells read as False."""
    if not is_editable(row_id, col_id):
        return False
    return bool(matrix.dependencies.get(cell_key(row_id, col_id), False))


# ==================== Mutations ====================

def _copy(matrix: StructuredMatrix) -> StructuredMatrix:
    return matrix.model_copy(deep=True)


def _sort_axes(matrix: StructuredMatrix) -> None:
    matrix.rows.sort(key=lambda row: row.id)
    matrix.columns.sort(key=lambda column: column.id)


def set_dependency(
    matrix: StructuredMatrix, row_id: int, col_id: int, value: bool
) -> StructuredMatrix:
    """Return a copy with the cell set to ``value``.

    False is stored as an absent key, so toggling a cell twice yields the
    original map.

    Raises:
        NonEditableCellError: if ``row_id >= col_id``
    """
    if not is_editable(row_id, col_id):
        raise NonEditableCellError(row_id, col_id)

    updated = _copy(matrix)
    key = cell_key(row_id, col_id)
    if value:
        updated.dependencies[key] = True
    else:
        updated.dependencies.pop(key, None)
    return updated


def toggle_dependency(matrix: StructuredMatrix, row_id: int, col_id: int) -> StructuredMatrix:
    """Flip one upper-triangle cell (absent -> True, True -> False, False -> True).

    Unknown row or column IDs leave the matrix unchanged. Cells outside the
    upper triangle raise ``NonEditableCellError``.
    """
    if not is_editable(row_id, col_id):
        raise NonEditableCellError(row_id, col_id)

    if find_row(matrix, row_id) is None or find_row(matrix, col_id) is None:
        return _copy(matrix)

    return set_dependency(matrix, row_id, col_id, not get_dependency(matrix, row_id, col_id))


def add_attribute(
    matrix: StructuredMatrix,
    name: str,
    category: str,
    requested_id: Optional[int] = None,
) -> StructuredMatrix:
    """Append a row and its mirrored column.

    Without ``requested_id`` the new ID is ``max(existing) + 1``, or 1 when the
    matrix has no rows. Rows and columns stay sorted by ID. No dependency
    entries are created.

    Raises:
        ValidationError: blank name or non-positive requested ID
        DuplicateIdError: requested ID already used by a row
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Attribute name is required", field="name")

    existing = row_ids(matrix)
    if requested_id is not None:
        if requested_id <= 0:
            raise ValidationError("Attribute ID must be a positive integer", field="id")
        if requested_id in existing:
            raise DuplicateIdError(requested_id)
        new_id = requested_id
    else:
        new_id = max(existing) + 1 if existing else 1

    updated = _copy(matrix)
    updated.rows.append(Row(id=new_id, name=name, category=category or DEFAULT_CATEGORY))
    if find_column(updated, new_id) is None:
        updated.columns.append(Column(id=new_id, name=str(new_id)))
    _sort_axes(updated)
    return updated


def remove_attribute(matrix: StructuredMatrix, row_id: int) -> StructuredMatrix:
    """Drop the row, its column and every dependency key that mentions the ID"""
    updated = _copy(matrix)
    updated.rows = [row for row in updated.rows if row.id != row_id]
    updated.columns = [column for column in updated.columns if column.id != row_id]

    stale = []
    for key in updated.dependencies:
        try:
            r, c = parse_cell_key(key)
        except ValidationError:
            continue
        if r == row_id or c == row_id:
            stale.append(key)
    for key in stale:
        del updated.dependencies[key]

    return updated


def rename_attribute(matrix: StructuredMatrix, row_id: int, new_name: str) -> StructuredMatrix:
    """Set a row's name; no-op when the row is missing"""
    updated = _copy(matrix)
    for row in updated.rows:
        if row.id == row_id:
            row.name = new_name
    return updated


# ==================== Aggregation ====================

def compute_totals(matrix: StructuredMatrix) -> MatrixTotals:
    """Row, column and category totals over true upper-triangle cells.

    Every row, column and category present in the matrix gets an entry, zero
    when nothing is recorded. Keys that are malformed, reference unknown IDs,
    or sit on/below the diagonal are ignored.
    """
    row_totals: Dict[int, int] = {row.id: 0 for row in matrix.rows}
    column_totals: Dict[int, int] = {column.id: 0 for column in matrix.columns}
    category_totals: Dict[str, int] = {}
    category_of: Dict[int, str] = {}

    for row in matrix.rows:
        category_totals.setdefault(row.category, 0)
        category_of[row.id] = row.category

    for key, value in matrix.dependencies.items():
        if not value:
            continue
        try:
            r, c = parse_cell_key(key)
        except ValidationError:
            continue
        if not is_editable(r, c) or r not in row_totals or c not in column_totals:
            continue
        row_totals[r] += 1
        column_totals[c] += 1
        category_totals[category_of[r]] += 1

    return MatrixTotals(
        row_totals=row_totals,
        column_totals=column_totals,
        category_totals=category_totals,
    )


def count_dependencies(matrix: StructuredMatrix) -> int:
    return sum(compute_totals(matrix).row_totals.values())


def group_rows_by_category(matrix: StructuredMatrix) -> List[CategoryGroup]:
    """Rows grouped by category, categories in order of first appearance"""
    groups: "OrderedDict[str, List[Row]]" = OrderedDict()
    for row in matrix.rows:
        groups.setdefault(row.category, []).append(row)
    return [CategoryGroup(category=category, rows=rows) for category, rows in groups.items()]


# ==================== Construction ====================

def build_matrix(rows: Iterable[Tuple[int, str, str]], dependencies: Iterable[str] = ()) -> StructuredMatrix:
    """Matrix from ``(id, name, category)`` tuples and a list of true cell keys"""
    matrix = StructuredMatrix(
        rows=[Row(id=row_id, name=name, category=category) for row_id, name, category in rows],
        columns=[],
        dependencies={},
    )
    matrix.columns = [Column(id=row.id, name=str(row.id)) for row in matrix.rows]
    _sort_axes(matrix)
    for key in dependencies:
        r, c = parse_cell_key(key)
        matrix = set_dependency(matrix, r, c, True)
    return matrix


def default_matrix() -> StructuredMatrix:
    """Seed structure for a newly created matrix"""
    return build_matrix(DEFAULT_ROWS)


def normalize_matrix(matrix: StructuredMatrix) -> StructuredMatrix:
    """Restore the structural invariants on a record from outside.

    Rows and columns are sorted and kept in lockstep (a missing mirrored
    column is rebuilt, an orphan column dropped). Dependency keys that are
    malformed, reference unknown IDs, lie outside the upper triangle, or are
    False are discarded.
    """
    updated = _copy(matrix)

    seen = set()
    rows = []
    for row in updated.rows:
        if row.id not in seen:
            seen.add(row.id)
            rows.append(row)
    updated.rows = rows

    columns = {column.id: column for column in updated.columns if column.id in seen}
    for row_id in seen:
        columns.setdefault(row_id, Column(id=row_id, name=str(row_id)))
    updated.columns = list(columns.values())
    _sort_axes(updated)

    dependencies = {}
    for key, value in updated.dependencies.items():
        try:
            r, c = parse_cell_key(key)
        except ValidationError:
            continue
        if value and is_editable(r, c) and r in seen and c in seen:
            dependencies[cell_key(r, c)] = True
    updated.dependencies = dependencies
    return updated
