"""Exception taxonomy for the fidelity harness.

- ``GenerationError``: the schema/row generator reached a state it assumed
  impossible (e.g. a logical type missing from a dispatch table). Always a
  generator bug; never caught inside the harness.
- ``ExternalOperationError``: table creation, session writes, backup or
  restore failed in a collaborator. Propagated verbatim, never retried.
- ``VerificationMismatch``: a round trip did not preserve fidelity. Derives
  from ``AssertionError`` so test runners report it as a failed assertion.
- ``ConfigError``: the harness configuration file is malformed.
"""


class FidelityError(Exception):
    """Base class for all harness errors."""


class GenerationError(FidelityError):
    """Raised when schema or row generation hits an unsupported case."""


class ExternalOperationError(FidelityError):
    """Raised by cluster and backup/restore collaborators on failure."""


class VerificationMismatch(FidelityError, AssertionError):
    """Raised when a restored table is not equivalent to its source."""


class ConfigError(FidelityError):
    """Raised when the harness configuration cannot be parsed."""
