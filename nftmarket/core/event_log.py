"""Append-only, hash-chained marketplace event log backed by SQLite.

The event log is the durable feed for indexers.  Subscribe ``append`` to a
``Chain`` and every committed event is persisted in emission order.

Design:
- Append-only: only `append()` writes; no update, no delete.
- Hash-chained: each record includes the SHA-256 of the previous record.
- WAL journal mode for concurrent readers.
- record_hash UNIQUE constraint for tamper detection.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from nftmarket.core.hasher import canonical_json_bytes, compute_record_hash, sha256_hex
from nftmarket.models.events import EVENT_TYPE_MAP, EventKind, MarketEvent


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_LOG = """
CREATE TABLE IF NOT EXISTS event_log (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id              TEXT NOT NULL UNIQUE,
    kind                  TEXT NOT NULL,
    contract              TEXT NOT NULL,
    timestamp_utc         TEXT NOT NULL,
    payload_json          TEXT NOT NULL,
    previous_record_hash  TEXT NOT NULL DEFAULT '',
    record_hash           TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_KIND = """
CREATE INDEX IF NOT EXISTS idx_kind ON event_log(kind, id);
"""

_CREATE_IDX_CONTRACT = """
CREATE INDEX IF NOT EXISTS idx_contract ON event_log(contract, id);
"""


class EventLogIntegrityError(RuntimeError):
    """Raised when the hash chain is broken."""


class EventRecord(BaseModel):
    """A sealed row of the event log."""

    model_config = ConfigDict(frozen=True)

    sequence: int = 0
    event_id: str
    kind: EventKind
    contract: str
    timestamp_utc: str
    payload: dict[str, Any]
    previous_record_hash: str = ""
    record_hash: str = ""

    def hash_fields(self) -> dict[str, Any]:
        """Return the fields covered by ``record_hash``."""
        return self.model_dump(mode="json", exclude={"sequence", "record_hash"})


class EventLog:
    """Append-only, hash-chained store of committed marketplace events.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_LOG)
            conn.execute(_CREATE_IDX_KIND)
            conn.execute(_CREATE_IDX_CONTRACT)
            conn.commit()

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, event: MarketEvent) -> EventRecord:
        """Seal *event* into a record linked to the previous one and persist it.

        This is the ONLY write method. There is no update or delete.
        """
        payload = event.model_dump(
            mode="json", exclude={"event_id", "kind", "contract", "timestamp_utc"}
        )
        record = EventRecord(
            event_id=event.event_id,
            kind=event.kind,
            contract=event.contract,
            timestamp_utc=event.timestamp_utc.isoformat(),
            payload=payload,
            previous_record_hash=self._get_latest_hash(),
        )
        sealed = record.model_copy(
            update={"record_hash": compute_record_hash(record.hash_fields())}
        )
        sequence = self._insert(sealed)
        return sealed.model_copy(update={"sequence": sequence})

    def _insert(self, record: EventRecord) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO event_log
                    (event_id, kind, contract, timestamp_utc, payload_json,
                     previous_record_hash, record_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.event_id,
                    record.kind.value,
                    record.contract,
                    record.timestamp_utc,
                    # Token ids and amounts are uint256; keep them exact.
                    json.dumps(record.payload, sort_keys=True),
                    record.previous_record_hash,
                    record.record_hash,
                ),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def _get_latest_hash(self) -> str:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT record_hash FROM event_log ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def get_events(
        self,
        kind: EventKind | None = None,
        contract: str | None = None,
    ) -> list[EventRecord]:
        """Return records in append order, optionally filtered."""
        clauses: list[str] = []
        params: list[str] = []
        if kind is not None:
            clauses.append("kind = ?")
            params.append(kind.value)
        if contract is not None:
            clauses.append("contract = ?")
            params.append(contract)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM event_log {where} ORDER BY id ASC", params
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def get_latest(self) -> EventRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM event_log ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return self._row_to_record(row) if row else None

    def count(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM event_log").fetchone()
        return int(n)

    @staticmethod
    def decode(record: EventRecord) -> MarketEvent:
        """Rebuild the typed event a record was sealed from."""
        model_cls = EVENT_TYPE_MAP[record.kind]
        return model_cls.model_validate(
            {
                **record.payload,
                "event_id": record.event_id,
                "kind": record.kind,
                "contract": record.contract,
                "timestamp_utc": record.timestamp_utc,
            }
        )

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self) -> bool:
        """Verify the hash chain integrity of the whole log.

        Returns True if the chain is valid, raises EventLogIntegrityError otherwise.
        """
        prev_hash = ""
        for record in self.get_events():
            if record.previous_record_hash != prev_hash:
                raise EventLogIntegrityError(
                    f"Chain broken at record {record.event_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {record.previous_record_hash!r}"
                )
            expected_hash = compute_record_hash(record.hash_fields())
            if record.record_hash != expected_hash:
                raise EventLogIntegrityError(
                    f"Tampered record {record.event_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {record.record_hash!r}"
                )
            prev_hash = record.record_hash
        return True

    # ------------------------------------------------------------------
    # External anchoring
    # ------------------------------------------------------------------

    def export_anchor(self) -> dict[str, Any]:
        """Export a tamper-evident anchor of the current log head.

        Comparing a previously exported anchor against the current log
        detects retroactive rewrites.
        """
        records = self.get_events()
        anchor_payload: dict[str, Any] = {
            "record_count": len(records),
            "root_hash": records[-1].record_hash if records else "",
            "first_record_hash": records[0].record_hash if records else "",
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
        anchor_payload["anchor_hash"] = (
            sha256_hex(canonical_json_bytes(anchor_payload)) if records else ""
        )
        return anchor_payload

    def verify_against_anchor(self, anchor: dict[str, Any]) -> bool:
        """Verify the current log against a previously exported anchor.

        Raises ``EventLogIntegrityError`` if the log has diverged.
        """
        records = self.get_events()
        expected_count = anchor.get("record_count", 0)
        if len(records) < expected_count:
            raise EventLogIntegrityError(
                f"Log has {len(records)} records but anchor expects at least "
                f"{expected_count}."
            )
        if expected_count == 0:
            return True

        if records[0].record_hash != anchor.get("first_record_hash", ""):
            raise EventLogIntegrityError(
                "First record hash mismatch. Log may have been rewritten from the beginning."
            )
        if records[expected_count - 1].record_hash != anchor.get("root_hash", ""):
            raise EventLogIntegrityError(
                f"Root hash mismatch at record {expected_count}. "
                "Log may have been retroactively modified."
            )

        self.verify_chain()
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: tuple) -> EventRecord:
        (
            sequence,
            event_id,
            kind,
            contract,
            timestamp_utc,
            payload_json,
            previous_record_hash,
            record_hash,
        ) = row
        return EventRecord(
            sequence=sequence,
            event_id=event_id,
            kind=EventKind(kind),
            contract=contract,
            timestamp_utc=timestamp_utc,
            payload=json.loads(payload_json),
            previous_record_hash=previous_record_hash,
            record_hash=record_hash,
        )
