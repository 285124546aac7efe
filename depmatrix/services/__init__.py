from depmatrix.services.matrix_store import (
    MatrixStore,
    InMemoryMatrixStore,
    RemoteMatrixStore,
    create_matrix_store,
    memory_store,
)
from depmatrix.services.history_service import HistoryLog, history_log
from depmatrix.services.access_gate import AccessGate, AccessState, access_gate
from depmatrix.services.matrix_service import MatrixService
