"""
Storage backend contract shared by every courtcheck operation.

A single table addressed by (PK, SK). The only concurrency control available
is the precondition attached to each write and all-or-nothing transactions;
there is no locking primitive.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from .conditions import Condition


@dataclass
class UpdateSpec:
    """Field changes for an update.

    ``set_values`` overwrites attributes; ``increments`` atomically adds to
    numeric attributes (a missing attribute counts as 0).
    """

    set_values: dict[str, Any] = field(default_factory=dict)
    increments: dict[str, int | float] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.set_values and not self.increments


@dataclass
class TransactPut:
    """Put operation inside a transaction."""

    item: dict[str, Any]
    condition: Condition | None = None


@dataclass
class TransactUpdate:
    """Update operation inside a transaction."""

    pk: str
    sk: str
    changes: UpdateSpec
    condition: Condition | None = None


TransactOperation = TransactPut | TransactUpdate


class StorageBackend(ABC):
    """Single-table storage contract.

    Failed preconditions raise ConditionFailedError (TransactionCanceledError
    for transactions); transport problems raise StorageError.
    """

    table_name: str

    @abstractmethod
    def get_item(self, pk: str, sk: str, consistent_read: bool = False) -> dict[str, Any] | None:
        """Point read. ``consistent_read=True`` must observe every committed write."""

    @abstractmethod
    def put_item(self, item: dict[str, Any], condition: Condition | None = None) -> None:
        """Write a whole row under an optional precondition."""

    @abstractmethod
    def update_item(
        self,
        pk: str,
        sk: str,
        changes: UpdateSpec,
        condition: Condition | None = None,
        return_values: bool = False,
    ) -> dict[str, Any] | None:
        """Apply field changes; returns the updated row when ``return_values`` is set."""

    @abstractmethod
    def delete_item(self, pk: str, sk: str) -> None:
        """Delete a row. Deleting a missing row is not an error."""

    @abstractmethod
    def query(
        self, pk: str, sk_prefix: str | None = None, descending: bool = False
    ) -> list[dict[str, Any]]:
        """All rows in a partition, optionally limited to a sort-key prefix, in sort-key order."""

    @abstractmethod
    def transact_write(self, operations: list[TransactOperation]) -> None:
        """Commit all operations atomically or none of them."""
