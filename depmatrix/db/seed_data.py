"""
Demo Matrix Seed Module

The sixteen-attribute tugboat selection matrix used for demos and local
development, plus a helper that creates it through any ``MatrixStore``.
Run with: python -m depmatrix.db.seed_data [--remote TOKEN]
"""
import asyncio
from typing import List, Tuple

from depmatrix.schemas.matrix import MatrixItem, StructuredMatrix
from depmatrix.services.matrix_model import build_matrix
from depmatrix.services.matrix_store import MatrixStore, RemoteMatrixStore, create_matrix_store


# ==================== Sample Data Constants ====================

DEMO_TITLE = "Tugboat Selection Criteria"
DEMO_DESCRIPTION = "Pairwise dependencies between tugboat selection criteria"

DEMO_ROWS: List[Tuple[int, str, str]] = [
    # Technical/Ops
    (1, "Availability", "Technical/Ops"),
    (2, "Preference for long term strategy", "Technical/Ops"),
    (3, "Logistic", "Technical/Ops"),
    (4, "Maintainability", "Technical/Ops"),
    (5, "Durability", "Technical/Ops"),
    (6, "Service Readiness", "Technical/Ops"),

    # Safety
    (7, "Safety operation of tugboat", "Safety"),
    (8, "Avoidance of Tank Top", "Safety"),
    (9, "Safety to Crew", "Safety"),

    # Economy
    (10, "Commercial & Org. Frame", "Economy"),
    (11, "Operational Cost", "Economy"),
    (12, "M/R Cost", "Economy"),
    (13, "Penalty Cost", "Economy"),
    (14, "Cost benefit Analysis", "Economy"),

    # other
    (15, "Preference of SKKMIGAS", "other"),
    (16, "Local Content", "other"),
]

DEMO_DEPENDENCIES: List[str] = [
    "1_3", "1_4", "1_7", "1_8", "1_10", "1_11", "1_12", "1_13", "1_14", "1_15", "1_16",
    "2_5", "2_10", "2_11", "2_12", "2_13", "2_14", "2_15",
    "3_4", "3_10", "3_11", "3_12", "3_14",
    "4_5", "4_6", "4_7", "4_10", "4_11", "4_12", "4_13", "4_14", "4_16",
    "5_6", "5_7", "5_11", "5_12", "5_13", "5_16",
    "6_8", "6_11", "6_12", "6_13", "6_16",
    "7_8", "7_10", "7_16",
    "8_11", "8_12", "8_13", "8_16",
    "9_11", "9_12", "9_16",
    "10_11", "10_12", "10_13", "10_14", "10_16",
    "11_12", "11_13", "11_14", "11_15",
    "12_13", "12_14", "12_15",
    "13_14", "13_15",
    "14_15",
    "15_16",
]


def demo_matrix() -> StructuredMatrix:
    """Fresh copy of the demo structure"""
    return build_matrix(DEMO_ROWS, DEMO_DEPENDENCIES)


async def seed_demo_matrix(
    store: MatrixStore,
    keyword: str,
    title: str = DEMO_TITLE,
    description: str = DEMO_DESCRIPTION,
    created_by: str = "seed",
) -> MatrixItem:
    """Create the demo matrix in ``store``"""
    record = await store.create(
        title=title,
        description=description,
        keyword=keyword,
        data=demo_matrix(),
        created_by=created_by,
    )
    print(f"Created matrix {record.id} with {len(record.data.rows)} attributes "
          f"and {len(record.data.dependencies)} dependencies")
    return record


# ==================== Main Seed Function ====================

async def seed_all(token: str = None, keyword: str = "demo"):
    """Seed the demo matrix into the configured store"""
    print("=" * 50)
    print("Starting matrix seeding...")
    print("=" * 50)

    store = create_matrix_store(token=token)
    try:
        await seed_demo_matrix(store, keyword=keyword)
        print("=" * 50)
        print("Matrix seeding completed successfully!")
        print("=" * 50)
    except Exception as e:
        print(f"Error seeding matrix: {e}")
        raise
    finally:
        if isinstance(store, RemoteMatrixStore):
            await store.client.close()


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 2 and sys.argv[1] == "--remote":
        asyncio.run(seed_all(token=sys.argv[2]))
    else:
        asyncio.run(seed_all())
