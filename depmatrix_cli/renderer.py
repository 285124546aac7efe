"""
Matrix Renderer - terminal output for matrix records and snapshots

Draws the triangular matrix as a rich table: one row per attribute, one
column per mirrored ID, a row-total column, a column-total footer and a
separate category-total table.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.table import Table
from rich.box import ROUNDED, SIMPLE

from depmatrix.core.exceptions import ValidationError
from depmatrix.schemas.matrix import MatrixTotals, StructuredMatrix
from depmatrix.services.matrix_model import compute_totals, get_dependency, is_editable, normalize_matrix


CELL_TRUE = "■"
CELL_FALSE = "·"
CELL_BLOCKED = ""


def extract_matrix(payload: Dict[str, Any]) -> StructuredMatrix:
    """Accept a bare structure, a matrix record or a history entry"""
    if "matrixSnapshot" in payload or "matrix_snapshot" in payload:
        snapshot = payload.get("matrixSnapshot") or payload.get("matrix_snapshot")
        if not snapshot:
            raise ValidationError("History entry has no matrix snapshot", field="matrixSnapshot")
        return StructuredMatrix.model_validate_json(snapshot)
    if "data" in payload and isinstance(payload["data"], dict):
        return StructuredMatrix.model_validate(payload["data"])
    if "rows" in payload:
        return StructuredMatrix.model_validate(payload)
    raise ValidationError("File does not contain a matrix structure")


def load_matrix_file(path: Path) -> StructuredMatrix:
    """Read a JSON file and return its normalized matrix structure"""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(payload, dict):
        raise ValidationError("File does not contain a matrix structure")
    try:
        return normalize_matrix(extract_matrix(payload))
    except ValueError as e:
        raise ValidationError(f"Failed to load matrix data. The format might be invalid: {e}") from e


def totals_payload(totals: MatrixTotals) -> Dict[str, Dict[str, int]]:
    """JSON-friendly totals (integer keys become strings)"""
    return {
        "rowTotals": {str(k): v for k, v in totals.row_totals.items()},
        "columnTotals": {str(k): v for k, v in totals.column_totals.items()},
        "categoryTotals": dict(totals.category_totals),
    }


def build_matrix_table(matrix: StructuredMatrix, title: Optional[str] = None) -> Table:
    totals = compute_totals(matrix)

    table = Table(title=title, box=ROUNDED, show_footer=True, header_style="bold cyan")
    table.add_column("ID", justify="right", footer="")
    table.add_column("Attribute", footer="Total")
    table.add_column("Category", style="dim", footer="")
    for column in matrix.columns:
        table.add_column(column.name, justify="center", footer=str(totals.column_totals.get(column.id, 0)))
    table.add_column("Total", justify="right", style="bold", footer=str(sum(totals.row_totals.values())))

    for row in matrix.rows:
        cells = []
        for column in matrix.columns:
            if not is_editable(row.id, column.id):
                cells.append(CELL_BLOCKED)
            elif get_dependency(matrix, row.id, column.id):
                cells.append(f"[green]{CELL_TRUE}[/green]")
            else:
                cells.append(CELL_FALSE)
        table.add_row(str(row.id), row.name, row.category, *cells, str(totals.row_totals.get(row.id, 0)))

    return table


def build_category_table(matrix: StructuredMatrix) -> Table:
    totals = compute_totals(matrix)
    table = Table(title="Category Totals", box=SIMPLE)
    table.add_column("Category")
    table.add_column("Total", justify="right")
    for category, count in totals.category_totals.items():
        table.add_row(category, str(count))
    return table


def render_matrix(matrix: StructuredMatrix, console: Optional[Console] = None, title: Optional[str] = None) -> None:
    console = console or Console()
    console.print(build_matrix_table(matrix, title=title))
    console.print(build_category_table(matrix))
