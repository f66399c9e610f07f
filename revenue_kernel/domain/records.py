"""
Records -- Immutable estimate and account snapshots.

Responsibility:
    Defines the read-only input records the engines operate on and the
    conversion from plain mappings (API payloads, JSON exports, ORM rows
    rendered as dicts) into those records. Raw field values are preserved
    as given; the engines coerce prices and dates themselves so that a
    malformed value degrades locally instead of rejecting the snapshot.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Records are frozen; the engines never mutate a snapshot.
    - Every record has a non-blank string ``id``.
    - ``archived`` is a real boolean.

Failure modes:
    - SnapshotShapeError when a record is not a mapping, lacks an ``id``,
      carries a non-boolean ``archived`` flag, an unknown segment or ICP
      status, or a non-mapping per-year cache.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from revenue_kernel.domain.values import IcpStatus, RevenueSegment, is_blank
from revenue_kernel.exceptions import SnapshotShapeError


def _require_id(record_type: str, data: Mapping[str, Any]) -> str:
    raw = data.get("id")
    if is_blank(raw):
        raise SnapshotShapeError(record_type, "missing 'id'")
    return str(raw).strip()


def _require_bool(record_type: str, record_id: str, name: str, value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise SnapshotShapeError(
            record_type, f"'{name}' must be a boolean, got {value!r}", record_id
        )
    return value


def _year_mapping(record_type: str, record_id: str, name: str, value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SnapshotShapeError(
            record_type, f"'{name}' must be a mapping of year to value", record_id
        )
    return {str(k).strip(): v for k, v in value.items()}


@dataclass(frozen=True)
class Estimate:
    """
    A sales estimate / contract as read from the CRM.

    Contract:
        Frozen snapshot of one estimate row. Price and date fields hold the
        raw stored values (numbers, numeric strings, ISO strings, dates or
        None).
    Non-goals:
        - Does not validate prices or dates; see revenue_engines.pricing and
          revenue_engines.attribution for the tolerant readers.
    """

    id: str
    account_id: str | None = None
    total_price: Any = None
    total_price_with_tax: Any = None
    status: str | None = None
    pipeline_status: str | None = None
    contract_start: Any = None
    contract_end: Any = None
    estimate_date: Any = None
    created_date: Any = None
    division: str | None = None
    archived: bool = False
    salesperson: str | None = None
    estimator: str | None = None
    estimate_type: str | None = None
    lmn_estimate_id: str | None = None

    @classmethod
    def from_mapping(cls, data: Any) -> Estimate:
        """Build an Estimate from a plain record, ignoring unknown keys."""
        if not isinstance(data, Mapping):
            raise SnapshotShapeError("estimate", f"expected a mapping, got {type(data).__name__}")
        record_id = _require_id("estimate", data)
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["id"] = record_id
        if values.get("account_id") is not None:
            values["account_id"] = str(values["account_id"])
        values["archived"] = _require_bool("estimate", record_id, "archived", data.get("archived"))
        return cls(**values)


@dataclass(frozen=True)
class Account:
    """
    A customer account with its cached revenue-derived fields.

    Contract:
        Frozen snapshot; ``total_estimates_by_year``, ``revenue_by_year`` and
        ``segment_by_year`` are caches maintained by the persistence layer
        and keyed by year strings.
    Non-goals:
        - Does not recompute its own segment; see
          revenue_engines.segmentation.
    """

    id: str
    name: str | None = None
    annual_revenue: Any = None
    revenue_segment: RevenueSegment | None = None
    total_estimates_by_year: dict[str, Any] = field(default_factory=dict)
    revenue_by_year: dict[str, Any] = field(default_factory=dict)
    segment_by_year: dict[str, Any] = field(default_factory=dict)
    icp_status: IcpStatus | None = None
    archived: bool = False

    @classmethod
    def from_mapping(cls, data: Any) -> Account:
        """Build an Account from a plain record, ignoring unknown keys."""
        if not isinstance(data, Mapping):
            raise SnapshotShapeError("account", f"expected a mapping, got {type(data).__name__}")
        record_id = _require_id("account", data)

        segment = data.get("revenue_segment")
        if not is_blank(segment):
            try:
                segment = RevenueSegment(str(segment).strip().upper())
            except ValueError:
                raise SnapshotShapeError(
                    "account", f"unknown revenue_segment {segment!r}", record_id
                ) from None
        else:
            segment = None

        icp = data.get("icp_status")
        if not is_blank(icp):
            try:
                icp = IcpStatus(str(icp).strip().lower())
            except ValueError:
                raise SnapshotShapeError(
                    "account", f"unknown icp_status {icp!r}", record_id
                ) from None
        else:
            icp = None

        return cls(
            id=record_id,
            name=data.get("name"),
            annual_revenue=data.get("annual_revenue"),
            revenue_segment=segment,
            total_estimates_by_year=_year_mapping(
                "account", record_id, "total_estimates_by_year", data.get("total_estimates_by_year")
            ),
            revenue_by_year=_year_mapping(
                "account", record_id, "revenue_by_year", data.get("revenue_by_year")
            ),
            segment_by_year=_year_mapping(
                "account", record_id, "segment_by_year", data.get("segment_by_year")
            ),
            icp_status=icp,
            archived=_require_bool("account", record_id, "archived", data.get("archived")),
        )


def as_estimates(records: Iterable[Any]) -> tuple[Estimate, ...]:
    """Normalize a collection of Estimate records and/or plain mappings."""
    if records is None or isinstance(records, (str, bytes, Mapping)):
        raise SnapshotShapeError("estimate collection", "expected an iterable of estimates")
    return tuple(
        r if isinstance(r, Estimate) else Estimate.from_mapping(r) for r in records
    )


def as_accounts(records: Iterable[Any]) -> tuple[Account, ...]:
    """Normalize a collection of Account records and/or plain mappings."""
    if records is None or isinstance(records, (str, bytes, Mapping)):
        raise SnapshotShapeError("account collection", "expected an iterable of accounts")
    return tuple(
        r if isinstance(r, Account) else Account.from_mapping(r) for r in records
    )


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time read of the accounts and estimates the engines evaluate.

    Contract:
        Produced by the persistence collaborator (or a JSON export) and
        passed, together with an explicit year, to every engine call.
    """

    accounts: tuple[Account, ...] = ()
    estimates: tuple[Estimate, ...] = ()

    @classmethod
    def from_records(
        cls,
        accounts: Iterable[Any] = (),
        estimates: Iterable[Any] = (),
    ) -> Snapshot:
        """Build a snapshot from plain records or already-built records."""
        return cls(accounts=as_accounts(accounts), estimates=as_estimates(estimates))

    def account(self, account_id: str) -> Account | None:
        """Look up an account by id."""
        for acc in self.accounts:
            if acc.id == account_id:
                return acc
        return None

    def estimates_by_account(self) -> dict[str, tuple[Estimate, ...]]:
        """Group estimates by ``account_id``; estimates without one are dropped."""
        grouped: dict[str, list[Estimate]] = {}
        for est in self.estimates:
            if est.account_id is None:
                continue
            grouped.setdefault(est.account_id, []).append(est)
        return {k: tuple(v) for k, v in grouped.items()}
