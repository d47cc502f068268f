"""
Supply-timeline projection for a single chemical.

Given a chemical's immediate stock (factory stock plus local purchase),
its daily consumption and its pending import shipments, these functions
lay out a day-indexed timeline of supply segments measured from a
reference date:

* ``immediate-stock``: stock already on site, starting at day 0;
* ``import``: a shipment being consumed after it arrives;
* ``gap``: days where stock runs out before the next dated shipment
  arrives and a local purchase must bridge the shortfall.

Shipments with a known arrival date are processed first, earliest
first; shipments without a date are assumed to arrive exactly when the
previous stock runs out, after all dated ones.

All functions are pure: they depend solely on their inputs and the
reference date, perform no I/O and never modify the record they are
given. This makes the projection safe to run for the live dashboard and
for historical snapshots at the same time.
"""

from __future__ import annotations

from datetime import date, timedelta
from math import ceil, floor
from typing import Any, Iterable, List, Optional

from stockestimate.config import DEFAULTS
from stockestimate.domain.migration import AnyChemical, migrate
from stockestimate.domain.models import (
    GAP,
    IMMEDIATE_STOCK,
    IMPORT,
    OK,
    UNBOUNDED,
    DerivedChemical,
    ImportShipment,
    TimelineSegment,
)
from stockestimate.domain.policies import classify_status
from stockestimate.domain.values import format_quantity, parse_date


def resolve_reference_date(reference_date: Any = None) -> date:
    """Return ``reference_date`` as a calendar date, defaulting to today.

    Timestamps are truncated to their day. ``None`` and blank strings mean
    today.

    Raises
    ------
    ValueError
        If a value is given but is not a valid calendar date, so that a
        projection is never silently measured from the wrong day.
    """
    if reference_date is None or (isinstance(reference_date, str) and not reference_date.strip()):
        return date.today()
    ref = parse_date(reference_date)
    if ref is None:
        raise ValueError(f"Invalid reference date: {reference_date!r}")
    return ref


def day_offset(reference_date: date, target: date) -> int:
    """Whole calendar days from ``reference_date`` to ``target``.

    Negative when ``target`` is in the past.
    """
    return (target - reference_date).days


def arrival_day(reference_date: date, estimated_arrival: date) -> int:
    """Day offset of a shipment arrival, past-due arrivals clamped to day 0."""
    return max(0, day_offset(reference_date, estimated_arrival))


def date_at_day(reference_date: date, day: float) -> date:
    """Calendar date on which timeline day ``day`` falls.

    Fractional days are floored: day 2.9 is still the third calendar day.
    """
    return reference_date + timedelta(days=floor(day))


def active_shipments(imports: Iterable[ImportShipment]) -> List[ImportShipment]:
    """Shipments that count: those with a positive quantity."""
    return [i for i in imports if i.quantity > 0]


def processing_order(imports: Iterable[ImportShipment]) -> List[ImportShipment]:
    """Order in which shipments are laid on the timeline.

    Dated shipments come first, sorted by arrival date (ties keep their
    input order), followed by undated shipments in input order.
    Non-positive quantities are dropped.
    """
    active = active_shipments(imports)
    dated = sorted((i for i in active if i.estimated_arrival is not None), key=lambda i: i.estimated_arrival)
    undated = [i for i in active if i.estimated_arrival is None]
    return dated + undated


def _unbounded(chem, immediate: float, total_import: float) -> DerivedChemical:
    return DerivedChemical.from_record(
        chem,
        total_import_quantity=total_import,
        total_quantity=immediate + total_import,
        immediate_quantity=immediate,
        immediate_days_remaining=UNBOUNDED,
        total_days_remaining=UNBOUNDED,
        total_months_remaining=UNBOUNDED,
        status=OK,
        gap_days=0.0,
        gap_quantity=0.0,
        timeline=[],
        timeline_end_day=0.0,
    )


def project_chemical(record: AnyChemical, reference_date: Optional[Any] = None) -> DerivedChemical:
    """Project one chemical's supply timeline.

    Parameters
    ----------
    record: ChemicalRecord | LegacyChemicalRecord | Mapping
        The chemical to project. Legacy or raw persisted shapes are
        migrated first; the argument itself is never modified.
    reference_date: date | datetime | str, optional
        Day 0 of the timeline. Defaults to today; snapshot replays must
        pass the snapshot's own date.

    Returns
    -------
    DerivedChemical
        The record's fields plus totals, day metrics, status, gap totals
        and the ordered timeline segments. When ``use_per_day`` is not
        positive every day metric is ``UNBOUNDED``, the status is ``ok``
        and the timeline is empty.
    """
    chem = migrate(record)
    unit = chem.unit

    immediate = chem.factory_stock + chem.local_purchase
    shipments = processing_order(chem.imports)
    total_import = sum(i.quantity for i in shipments)
    total = immediate + total_import

    use = chem.use_per_day
    if use <= 0:
        return _unbounded(chem, immediate, total_import)

    ref = resolve_reference_date(reference_date)
    immediate_days = immediate / use

    timeline: List[TimelineSegment] = []
    cursor = 0.0

    if immediate > 0:
        timeline.append(
            TimelineSegment(
                kind=IMMEDIATE_STOCK,
                start_day=0.0,
                end_day=immediate_days,
                quantity=immediate,
                label=f"Factory + Local ({format_quantity(immediate)} {unit})",
            )
        )
        cursor = immediate_days

    gap_days = 0.0
    gap_quantity = 0.0

    for n, ship in enumerate(shipments, start=1):
        duration = ship.quantity / use
        ship_label = ship.label or f"Import {n}"
        eta = ship.estimated_arrival

        if eta is not None:
            arrival = arrival_day(ref, eta)
            if cursor < arrival:
                days = arrival - cursor
                qty = days * use
                gap_days += days
                gap_quantity += qty
                timeline.append(
                    TimelineSegment(
                        kind=GAP,
                        start_day=cursor,
                        end_day=float(arrival),
                        quantity=qty,
                        label=f"GAP - Need {format_quantity(ceil(qty))} {unit} (before {ship_label})",
                    )
                )
                cursor = float(arrival)
            arrival_text = f"ETA: {eta.isoformat()}"
        else:
            arrival_text = "No ETA"

        timeline.append(
            TimelineSegment(
                kind=IMPORT,
                start_day=cursor,
                end_day=cursor + duration,
                quantity=ship.quantity,
                label=f"{ship_label} ({format_quantity(ship.quantity)} {unit}) - {arrival_text}",
                estimated_arrival=eta,
            )
        )
        cursor += duration

    total_days = total / use

    return DerivedChemical.from_record(
        chem,
        total_import_quantity=total_import,
        total_quantity=total,
        immediate_quantity=immediate,
        immediate_days_remaining=immediate_days,
        total_days_remaining=total_days,
        total_months_remaining=total_days / DEFAULTS.days_per_month,
        status=classify_status(immediate_days, gap_days),
        gap_days=gap_days,
        gap_quantity=gap_quantity,
        timeline=timeline,
        timeline_end_day=cursor,
    )
