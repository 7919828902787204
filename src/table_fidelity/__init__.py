"""table-fidelity: randomized fidelity verification for table backup/restore.

Generates storage-valid random table schemas and rows, drives a
backup-then-restore pipeline over them, and verifies that the restored
table is structurally identical to its source.

Usage:
    from table_fidelity import InMemoryCluster, LocalSnapshotPipeline, run_round_trip
    from table_fidelity import generate_schema, generate_rows
    from table_fidelity import schemas_equal, partitioning_equal, columns_equal
"""

__version__ = "0.1.0"

# Collaborators
from table_fidelity.adapters.base import BackupPipeline, ClusterClient, MutationSession
from table_fidelity.adapters.memory import InMemoryCluster
from table_fidelity.backup.local import LocalSnapshotPipeline, validate_snapshot

# Config
from table_fidelity.config.loader import load_harness_config, resolve_seed
from table_fidelity.config.models import HarnessConfig

# Errors
from table_fidelity.errors import (
    ConfigError,
    ExternalOperationError,
    FidelityError,
    GenerationError,
    VerificationMismatch,
)

# Fixtures
from table_fidelity.fixtures import decimal_fixture_schema, fixture_schema

# Generator
from table_fidelity.generator.rows import generate_rows
from table_fidelity.generator.tables import generate_schema

# Verifier
from table_fidelity.schema.comparator import (
    columns_equal,
    compare_partitioning,
    compare_schemas,
    partitioning_equal,
    schemas_equal,
)

# Models
from table_fidelity.schema.models import (
    ColumnDescriptor,
    HashPartitionRule,
    PartitioningSpec,
    RangePartitionRule,
    TableSchema,
    TypeAttributes,
)
from table_fidelity.schema.types import CompressionAlgorithm, Encoding, LogicalType

# Orchestrator
from table_fidelity.roundtrip import VerificationReport, run_round_trip

__all__ = [
    # Collaborators
    "BackupPipeline",
    "ClusterClient",
    "MutationSession",
    "InMemoryCluster",
    "LocalSnapshotPipeline",
    "validate_snapshot",
    # Config
    "load_harness_config",
    "resolve_seed",
    "HarnessConfig",
    # Errors
    "ConfigError",
    "ExternalOperationError",
    "FidelityError",
    "GenerationError",
    "VerificationMismatch",
    # Fixtures
    "decimal_fixture_schema",
    "fixture_schema",
    # Generator
    "generate_rows",
    "generate_schema",
    # Verifier
    "columns_equal",
    "compare_partitioning",
    "compare_schemas",
    "partitioning_equal",
    "schemas_equal",
    # Models
    "ColumnDescriptor",
    "HashPartitionRule",
    "PartitioningSpec",
    "RangePartitionRule",
    "TableSchema",
    "TypeAttributes",
    "CompressionAlgorithm",
    "Encoding",
    "LogicalType",
    # Orchestrator
    "VerificationReport",
    "run_round_trip",
]
