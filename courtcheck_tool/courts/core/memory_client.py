"""
In-memory storage backend.

Implements the same contract as DynamoDBClient against a dict, for local runs
and tests. Every call is applied atomically, the way DynamoDB applies a single
request; reads are always strongly consistent.
"""

import copy
import threading
from typing import Any

from ..constants import ATTR_PK, ATTR_SK, MAX_TRANSACTION_OPERATIONS
from ..exceptions import ConditionFailedError, StorageError, TransactionCanceledError
from .conditions import Condition
from .storage import StorageBackend, TransactOperation, TransactPut, TransactUpdate, UpdateSpec


def _apply_changes(item: dict[str, Any] | None, pk: str, sk: str, changes: UpdateSpec) -> dict:
    updated = copy.deepcopy(item) if item is not None else {ATTR_PK: pk, ATTR_SK: sk}
    updated.update(copy.deepcopy(changes.set_values))
    for attr, amount in changes.increments.items():
        current = updated.get(attr, 0)
        if not isinstance(current, (int, float)) or isinstance(current, bool):
            raise StorageError(f"Cannot ADD to non-numeric attribute '{attr}'")
        updated[attr] = current + amount
    return updated


class InMemoryClient(StorageBackend):
    """Dict-backed storage backend."""

    def __init__(self, table_name: str = "courtcheck-memory"):
        self.table_name = table_name
        self._items: dict[tuple[str, str], dict[str, Any]] = {}
        self._mutex = threading.Lock()

    def get_item(self, pk: str, sk: str, consistent_read: bool = False) -> dict[str, Any] | None:
        with self._mutex:
            item = self._items.get((pk, sk))
            return copy.deepcopy(item) if item is not None else None

    def put_item(self, item: dict[str, Any], condition: Condition | None = None) -> None:
        key = self._key_of(item)
        with self._mutex:
            if condition is not None and not condition.evaluate(self._items.get(key)):
                raise ConditionFailedError(f"Condition failed for {key}")
            self._items[key] = copy.deepcopy(item)

    def update_item(
        self,
        pk: str,
        sk: str,
        changes: UpdateSpec,
        condition: Condition | None = None,
        return_values: bool = False,
    ) -> dict[str, Any] | None:
        if changes.is_empty():
            raise StorageError("Update requires at least one change")
        with self._mutex:
            current = self._items.get((pk, sk))
            if condition is not None and not condition.evaluate(current):
                raise ConditionFailedError(f"Condition failed for {(pk, sk)}")
            updated = _apply_changes(current, pk, sk, changes)
            self._items[(pk, sk)] = updated
            return copy.deepcopy(updated) if return_values else None

    def delete_item(self, pk: str, sk: str) -> None:
        with self._mutex:
            self._items.pop((pk, sk), None)

    def query(
        self, pk: str, sk_prefix: str | None = None, descending: bool = False
    ) -> list[dict[str, Any]]:
        with self._mutex:
            matches = [
                copy.deepcopy(item)
                for (item_pk, item_sk), item in self._items.items()
                if item_pk == pk and (not sk_prefix or item_sk.startswith(sk_prefix))
            ]
        return sorted(matches, key=lambda item: item[ATTR_SK], reverse=descending)

    def transact_write(self, operations: list[TransactOperation]) -> None:
        if not operations:
            raise StorageError("Transaction requires at least one operation")
        if len(operations) > MAX_TRANSACTION_OPERATIONS:
            raise StorageError(
                f"Transaction cannot exceed {MAX_TRANSACTION_OPERATIONS} operations"
            )

        keys = [self._operation_key(op) for op in operations]
        if len(set(keys)) != len(keys):
            raise StorageError("Transaction cannot include multiple operations on one item")

        with self._mutex:
            reasons: list[str | None] = []
            for key, op in zip(keys, operations):
                current = self._items.get(key)
                held = op.condition is None or op.condition.evaluate(current)
                reasons.append(None if held else "ConditionalCheckFailed")
            if any(reasons):
                raise TransactionCanceledError("Transaction canceled", reasons)

            staged: dict[tuple[str, str], dict[str, Any]] = {}
            for key, op in zip(keys, operations):
                if isinstance(op, TransactPut):
                    staged[key] = copy.deepcopy(op.item)
                else:
                    staged[key] = _apply_changes(self._items.get(key), op.pk, op.sk, op.changes)
            self._items.update(staged)

    def _key_of(self, item: dict[str, Any]) -> tuple[str, str]:
        try:
            return item[ATTR_PK], item[ATTR_SK]
        except KeyError:
            raise StorageError("Item must include PK and SK")

    def _operation_key(self, operation: TransactOperation) -> tuple[str, str]:
        if isinstance(operation, TransactPut):
            return self._key_of(operation.item)
        if isinstance(operation, TransactUpdate):
            return operation.pk, operation.sk
        raise StorageError(f"Unsupported transaction operation: {operation!r}")
