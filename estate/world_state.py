"""
world_state.py - Versioned Key-Value World State

The WorldState is the ledger collaborator: the only component that mutates
state, and it does so only when a transaction commits.

Key responsibilities:
    - Holds committed (key -> value, version) pairs and per-key history
    - Opens a TransactionStub per invocation; the stub implements the
      StateStub protocol, records what the invocation read and buffers what
      it wrote
    - Commits a stub atomically under optimistic concurrency control: every
      key read must still carry the version seen at read time and every
      range scanned must still contain exactly the same keys and versions,
      otherwise ConflictError and nothing is applied
    - Always logs committed transactions (the audit trail behind history
      queries)
"""

from __future__ import annotations
from bisect import bisect_left, insort
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
import threading
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .core import (
    Args, ConflictError, Key, KeyModification, KeyValue, StorageError,
    COMPOSITE_KEY_NAMESPACE,
)
from .keys import partial_key_range

# Lowest simple key: everything in the composite namespace sorts below it.
_FIRST_SIMPLE_KEY = "\x01"

# (key, version) pairs observed by a range scan
RangeSnapshot = Tuple[Tuple[Key, int], ...]


@dataclass(frozen=True, slots=True)
class CommittedTransaction:
    """
    Immutable record of a committed transaction.

    Attributes:
        tx_id: Transaction identifier
        function: Invoked function name
        args: Invocation arguments
        sequence_number: Monotonic commit sequence (also the version written)
        timestamp: Logical time of the commit
        writes: (key, value) pairs applied; value None means deleted
    """
    tx_id: str
    function: str
    args: Tuple[str, ...]
    sequence_number: int
    timestamp: datetime
    writes: Tuple[Tuple[Key, Optional[bytes]], ...]

    def __repr__(self) -> str:
        return (f"CommittedTransaction({self.tx_id}, {self.function}, "
                f"seq={self.sequence_number}, {len(self.writes)} writes)")


def _check_key(key: Key) -> None:
    if not isinstance(key, str):
        raise StorageError(f"Key must be str, got {type(key).__name__}")
    if not key:
        raise StorageError("Key cannot be empty")


class TransactionStub:
    """
    Simulation context for one invocation.

    Reads go to committed state and are recorded with the version observed.
    Writes are buffered and are not visible to reads in the same invocation.
    Nothing reaches the world state until WorldState.commit() accepts the stub.
    """

    def __init__(
        self,
        world: WorldState,
        tx_id: str,
        function: str,
        args: Args,
    ):
        self._world = world
        self._tx_id = tx_id
        self._function = function
        self._args = list(args)
        self.read_versions: Dict[Key, Optional[int]] = {}
        self.range_reads: List[Tuple[Key, Optional[Key], RangeSnapshot]] = []
        self.writes: Dict[Key, Optional[bytes]] = {}
        self.committed = False

    @property
    def tx_id(self) -> str:
        return self._tx_id

    @property
    def world(self) -> WorldState:
        return self._world

    def get_function_and_parameters(self) -> Tuple[str, Args]:
        return self._function, list(self._args)

    # ------------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------------

    def get_state(self, key: Key) -> Optional[bytes]:
        _check_key(key)
        value, version = self._world._get_versioned(key)
        # The first read fixes the version the commit is validated against
        self.read_versions.setdefault(key, version)
        return value

    def _scan(self, start: Key, end: Optional[Key]) -> Iterator[KeyValue]:
        entries = self._world._scan(start, end)
        self.range_reads.append((start, end, tuple((k, ver) for k, _, ver in entries)))
        return iter([(k, value) for k, value, _ in entries])

    def get_state_by_range(self, start_key: Key, end_key: Key) -> Iterator[KeyValue]:
        for bound in (start_key, end_key):
            if not isinstance(bound, str):
                raise StorageError(f"Range bound must be str, got {type(bound).__name__}")
            if bound.startswith(COMPOSITE_KEY_NAMESPACE):
                raise StorageError("Range bounds cannot be composite keys")
        start = max(start_key, _FIRST_SIMPLE_KEY)
        return self._scan(start, end_key or None)

    def get_state_by_partial_composite_key(
        self, object_type: str, attributes: List[str]
    ) -> Iterator[KeyValue]:
        start, end = partial_key_range(object_type, attributes)
        return self._scan(start, end)

    def get_history_for_key(self, key: Key) -> Iterator[KeyModification]:
        _check_key(key)
        return iter(self._world.history(key))

    # ------------------------------------------------------------------------
    # Writes (buffered)
    # ------------------------------------------------------------------------

    def put_state(self, key: Key, value: bytes) -> None:
        _check_key(key)
        if not isinstance(value, (bytes, bytearray)):
            raise StorageError(f"Value for {key!r} must be bytes, got {type(value).__name__}")
        if not value:
            raise StorageError(f"Value for {key!r} cannot be empty")
        self.writes[key] = bytes(value)

    def del_state(self, key: Key) -> None:
        _check_key(key)
        self.writes[key] = None

    def __repr__(self) -> str:
        return (f"TransactionStub({self._tx_id}, {self._function}, "
                f"{len(self.read_versions)} reads, {len(self.writes)} writes)")


class WorldState:
    """
    Versioned key-value state with optimistic-concurrency commits.

    Design Principles:
        - Only commit() mutates: invocations run against a TransactionStub
          and their writes are applied together or not at all.
        - Stale reads are rejected: a commit whose read set or range scans no
          longer match current versions raises ConflictError.
        - Always logs: every commit lands in transaction_log and in the
          per-key history.

    Thread Safety:
        commit() and all reads take an internal lock, so stubs may be
        simulated and committed from several threads.

    Example:
        world = WorldState("main")
        stub = world.begin("initProperty", ["p1", "islab", "seoul", "alice"])
        response = Chaincode().invoke(stub)
        if response.ok:
            world.commit(stub)
    """

    def __init__(
        self,
        name: str,
        initial_time: Optional[datetime] = None,
        verbose: bool = True,
    ):
        """
        Create a world state.

        Args:
            name: World state identifier (prefix of generated tx ids)
            initial_time: Starting logical time (default: 1970-01-01)
            verbose: Print commit and conflict output (default: True)
        """
        self.name = name
        self.verbose = verbose
        self._state: Dict[Key, Tuple[bytes, int]] = {}
        self._sorted_keys: List[Key] = []
        self._history: Dict[Key, List[KeyModification]] = defaultdict(list)
        self.transaction_log: List[CommittedTransaction] = []
        self.seen_tx_ids: Set[str] = set()
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self._next_sequence: int = 1
        self._next_tx_number: int = 0
        self._lock = threading.RLock()

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the world state."""
        return self._current_time

    def get_state(self, key: Key) -> Optional[bytes]:
        """Committed value at key, or None."""
        return self._get_versioned(key)[0]

    def get_version(self, key: Key) -> Optional[int]:
        """Version of the committed value at key, or None if absent."""
        return self._get_versioned(key)[1]

    def keys(self) -> List[Key]:
        """All committed keys in sorted order (composite keys first)."""
        with self._lock:
            return list(self._sorted_keys)

    def snapshot(self) -> Dict[Key, bytes]:
        """Copy of all committed key/value pairs."""
        with self._lock:
            return {key: value for key, (value, _) in self._state.items()}

    def history(self, key: Key) -> List[KeyModification]:
        """Committed modifications of key, oldest first."""
        with self._lock:
            return list(self._history.get(key, ()))

    def __len__(self) -> int:
        return len(self._state)

    def _get_versioned(self, key: Key) -> Tuple[Optional[bytes], Optional[int]]:
        with self._lock:
            entry = self._state.get(key)
        if entry is None:
            return None, None
        return entry

    def _scan(self, start: Key, end: Optional[Key]) -> List[Tuple[Key, bytes, int]]:
        """Committed entries with start <= key < end (end None = open)."""
        with self._lock:
            i = bisect_left(self._sorted_keys, start)
            entries = []
            while i < len(self._sorted_keys):
                key = self._sorted_keys[i]
                if end is not None and key >= end:
                    break
                value, version = self._state[key]
                entries.append((key, value, version))
                i += 1
            return entries

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the logical clock. Time only moves forward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    def _generate_tx_id(self) -> str:
        """Format: tx:{name}:{number:012d}"""
        with self._lock:
            number = self._next_tx_number
            self._next_tx_number += 1
        return f"tx:{self.name}:{number:012d}"

    def begin(self, function: str, args: Args, tx_id: Optional[str] = None) -> TransactionStub:
        """Open a simulation context for one invocation."""
        return TransactionStub(self, tx_id or self._generate_tx_id(), function, args)

    def commit(self, stub: TransactionStub) -> CommittedTransaction:
        """
        Validate a stub's reads and apply its writes atomically.

        Args:
            stub: A stub opened on this world state and not yet committed

        Returns:
            The CommittedTransaction record

        Raises:
            StorageError: stub belongs to another world state, was already
                          committed, or reuses a committed tx id
            ConflictError: a key read (or a scanned range) changed since the
                           stub observed it; nothing is applied
        """
        if stub.world is not self:
            raise StorageError(f"Transaction {stub.tx_id} was not opened on {self.name}")

        with self._lock:
            if stub.committed or stub.tx_id in self.seen_tx_ids:
                raise StorageError(f"Transaction {stub.tx_id} already committed")

            try:
                self._validate_reads(stub)
            except ConflictError as e:
                if self.verbose:
                    print(f"✗ CONFLICT: {stub.tx_id}: {e}")
                raise

            sequence = self._next_sequence
            self._next_sequence += 1
            applied = []
            for key, value in stub.writes.items():
                if value is None:
                    if key in self._state:
                        del self._state[key]
                        self._sorted_keys.pop(bisect_left(self._sorted_keys, key))
                        self._history[key].append(
                            KeyModification(stub.tx_id, self._current_time, True)
                        )
                        applied.append((key, None))
                    continue
                if key not in self._state:
                    insort(self._sorted_keys, key)
                self._state[key] = (value, sequence)
                self._history[key].append(
                    KeyModification(stub.tx_id, self._current_time, False, value)
                )
                applied.append((key, value))

            function, args = stub.get_function_and_parameters()
            tx = CommittedTransaction(
                tx_id=stub.tx_id,
                function=function,
                args=tuple(args),
                sequence_number=sequence,
                timestamp=self._current_time,
                writes=tuple(applied),
            )
            self.transaction_log.append(tx)
            self.seen_tx_ids.add(stub.tx_id)
            stub.committed = True

        if self.verbose:
            print(f"✓ COMMITTED: {tx}")
        return tx

    def _validate_reads(self, stub: TransactionStub) -> None:
        for key, seen_version in stub.read_versions.items():
            current = self._state.get(key)
            current_version = None if current is None else current[1]
            if current_version != seen_version:
                raise ConflictError(key)

        for start, end, seen in stub.range_reads:
            current = tuple((k, ver) for k, _, ver in self._scan(start, end))
            if current != seen:
                changed = sorted(set(current) ^ set(seen))
                key = changed[0][0] if changed else start
                raise ConflictError(key, f"Phantom read in range [{start!r}, {end!r}): {key!r} changed")

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def clone(self) -> WorldState:
        """
        Create an independent copy of this world state.

        Committed values, versions, history, log, time and configuration are
        copied; stubs opened on the original cannot be committed to the clone.
        """
        with self._lock:
            cloned = WorldState(self.name, self._current_time, self.verbose)
            cloned._state = dict(self._state)
            cloned._sorted_keys = list(self._sorted_keys)
            for key, mods in self._history.items():
                cloned._history[key] = list(mods)
            cloned.transaction_log = list(self.transaction_log)
            cloned.seen_tx_ids = set(self.seen_tx_ids)
            cloned._next_sequence = self._next_sequence
            cloned._next_tx_number = self._next_tx_number
        return cloned
