"""
EntityIndex - keeps entity records and their callsign index in step.

Two kinds of keys are maintained per entity kind:
- `<kind>:<cid>`       -> JSON EntityRecord (kept until explicitly removed)
- `<callsign prefix><CALLSIGN>` -> owning CID (exists only while online)

Invariants after every successful operation:
- An index entry exists for callsign C iff some record is online with C
- At most one online record holds a given callsign
- firstSeen never changes once set

Consistency model:
Operations are read-check-write sequences with no isolation between
concurrent requests. Two simultaneous setOnline calls for the same
callsign can both pass the uniqueness check; the last index write wins
and the loser's record claims a callsign it does not own until its next
update. Lookups treat such drift as "not found" rather than failing.

Within one operation, independent store calls run in parallel on a
thread pool. On a TransactionalStore the writes of an operation are
committed as one batch instead, which closes the record/index gap.
"""

import json
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from usaa.config import config
from usaa.errors import ConflictError, IndexInconsistencyError, NotFoundError, StorageError
from usaa.store.protocol import KeyValueStore, TransactionalStore
from usaa.tracking.kinds import EntityKind
from usaa.tracking.record import EntityRecord, EntityStatus
from usaa.tracking.validation import normalize_callsign, validate_cid

logger = logging.getLogger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision."""
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds')


def _recency(record: EntityRecord) -> Tuple[datetime, int]:
    return (record.online_since or _EARLIEST, int(record.cid) if record.cid.isdigit() else 0)


class EntityIndex:
    """
    Online/offline tracking for one entity kind.

    Args:
        store: Key-value backend shared with other indexes
        kind: Key namespaces and attribute rules for this kind
        clock: Returns the current aware datetime (injectable for tests)
        executor: Pool for parallel store calls; one is created if omitted
    """

    def __init__(
        self,
        store: KeyValueStore,
        kind: EntityKind,
        clock: Optional[Callable[[], datetime]] = None,
        executor: Optional[Executor] = None,
    ):
        self.store = store
        self.kind = kind
        self._clock = clock or utc_now

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.store.write_workers,
            thread_name_prefix=f'usaa-{kind.name}',
        )

    def close(self) -> None:
        """Shut down the executor if this index created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def lookup_by_id(self, cid: Any) -> Optional[EntityRecord]:
        """Fetch the record for a CID, or None if it was never seen."""
        return self._load(validate_cid(cid))

    def lookup_by_callsign(self, callsign: Any) -> Optional[EntityRecord]:
        """
        Resolve a callsign to the online record that holds it.

        Returns None when the callsign is not indexed, or when the index
        entry does not resolve to a matching online record.
        """
        normalized = normalize_callsign(callsign)
        try:
            return self._resolve(normalized)
        except IndexInconsistencyError as e:
            logger.warning(f'{e.message}; treating as not found')
            return None

    def list_online(self) -> List[EntityRecord]:
        """
        All online records, most recently online first.

        Ties on onlineTime are ordered by CID (higher first). This scans
        every record of the kind, online or not.
        """
        keys = self.store.list_keys(self.kind.key_prefix)
        values = self._gather([(self.store.get, key) for key in keys])

        records = []
        for key, raw in zip(keys, values):
            if raw is None:
                # Removed between the scan and the fetch
                continue
            record = self._decode(key, raw)
            if record.is_online:
                records.append(record)

        records.sort(key=_recency, reverse=True)
        return records

    def count_online(self) -> int:
        return len(self.list_online())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def set_online(
        self,
        cid: Any,
        callsign: Any,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> EntityRecord:
        """
        Mark a CID online under a callsign, creating the record if needed.

        Raises:
            ValidationError: malformed CID, callsign or attributes
            ConflictError: another online entity holds the callsign
            StorageError: the store failed
        """
        cid = validate_cid(cid)
        normalized = normalize_callsign(callsign)
        attrs = self.kind.validate_attributes(attributes)

        callsign_key = self.kind.callsign_key(normalized)
        holder, existing = self._gather([
            (self.store.get, callsign_key),
            (self._load, cid),
        ])

        if holder is not None and holder != cid:
            logger.warning(
                f'{self.kind.label} {cid} rejected: {normalized} held by {holder}'
            )
            raise ConflictError(
                f'Callsign already in use by another {self.kind.name}'
            )

        # Moving to a new callsign releases the old one
        deletes = []
        if existing is not None and existing.callsign and existing.callsign != normalized:
            deletes = self._owned_index_keys(existing)

        now = self._timestamp()
        if existing is None:
            record = EntityRecord(
                cid=cid,
                callsign=normalized,
                status=EntityStatus.ONLINE,
                first_seen=now,
                online_time=now,
                last_update=now,
                attributes=attrs,
            )
        else:
            record = replace(
                existing,
                callsign=normalized,
                status=EntityStatus.ONLINE,
                first_seen=existing.first_seen or now,
                online_time=now,
                last_update=now,
                attributes={**existing.attributes, **attrs},
            )

        self._write(
            puts={
                self.kind.record_key(cid): self._encode(record),
                callsign_key: cid,
            },
            deletes=deletes,
        )

        logger.info(f'{self.kind.label} {cid} online as {normalized}')
        return record

    def set_offline(self, cid: Any) -> EntityRecord:
        """
        Mark a CID offline and release its callsign.

        The record is kept so firstSeen and attributes survive.
        """
        cid = validate_cid(cid)
        existing = self._load(cid)
        if existing is None:
            raise NotFoundError(f'{self.kind.label} not found')

        now = self._timestamp()
        record = replace(
            existing,
            status=EntityStatus.OFFLINE,
            offline_time=now,
            last_update=now,
        )

        self._write(
            puts={self.kind.record_key(cid): self._encode(record)},
            deletes=self._owned_index_keys(existing),
        )

        logger.info(f'{self.kind.label} {cid} offline (was {existing.callsign})')
        return record

    def remove(self, cid: Any) -> None:
        """Erase a CID's record and any index entry it owns."""
        cid = validate_cid(cid)
        existing = self._load(cid)
        if existing is None:
            raise NotFoundError(f'{self.kind.label} not found')

        self._write(
            puts={},
            deletes=[self.kind.record_key(cid)] + self._owned_index_keys(existing),
        )

        logger.info(f'{self.kind.label} {cid} removed from tracking')

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _timestamp(self) -> str:
        return format_timestamp(self._clock())

    def _load(self, cid: str) -> Optional[EntityRecord]:
        key = self.kind.record_key(cid)
        raw = self.store.get(key)
        if raw is None:
            return None
        return self._decode(key, raw)

    def _decode(self, key: str, raw: str) -> EntityRecord:
        try:
            return EntityRecord.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.error(f'Malformed record at {key}: {e}')
            raise StorageError('Malformed record', details=f'{key}: {e}') from e

    @staticmethod
    def _encode(record: EntityRecord) -> str:
        return json.dumps(record.to_dict())

    def _resolve(self, callsign: str) -> Optional[EntityRecord]:
        cid = self.store.get(self.kind.callsign_key(callsign))
        if cid is None:
            return None

        record = self._load(cid)
        if record is None:
            raise IndexInconsistencyError(
                f'Callsign {callsign} points at missing {self.kind.name} {cid}'
            )
        if not record.is_online or record.callsign != callsign:
            raise IndexInconsistencyError(
                f'Callsign {callsign} points at {self.kind.name} {cid} which does not hold it'
            )
        return record

    def _owned_index_keys(self, record: EntityRecord) -> List[str]:
        """Index key for record's callsign, if it still points at record."""
        if not record.callsign:
            return []
        key = self.kind.callsign_key(record.callsign)
        if self.store.get(key) != record.cid:
            return []
        return [key]

    def _gather(self, calls: Sequence[Tuple]) -> List[Any]:
        """
        Run independent store calls in parallel.

        Waits for every call, then raises the first failure.
        """
        futures = [self._executor.submit(fn, *args) for fn, *args in calls]

        results = []
        error = None
        for future in futures:
            exc = future.exception()
            if exc is not None:
                error = error or exc
                results.append(None)
            else:
                results.append(future.result())

        if error is not None:
            raise error
        return results

    def _write(self, puts: Dict[str, str], deletes: List[str]) -> None:
        """Best-effort dual write, or one atomic batch when supported."""
        if not puts and not deletes:
            return

        if isinstance(self.store, TransactionalStore):
            self.store.apply_batch(puts, deletes)
            return

        calls = [(self.store.put, key, value) for key, value in puts.items()]
        calls += [(self.store.delete, key) for key in deletes]
        self._gather(calls)
