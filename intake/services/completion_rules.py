"""
Completion reduction primitives.

Each function reduces presence / selection state to one CompletionStatus.
Both flow evaluators (buyer and seller) build on these; they differ only in
which records and field lists they feed in.

Presence means "truthy": None, "", False and 0 all count as not filled.
"""

from intake.services.sections import CompletionStatus


def is_filled(value) -> bool:
    return bool(value)


def count_filled(record, fields) -> int:
    """Number of ``fields`` that are filled on ``record`` (object or dict)."""
    if record is None:
        return 0
    getter = record.get if isinstance(record, dict) else lambda f: getattr(record, f, None)
    return sum(1 for f in fields if is_filled(getter(f)))


def contact_block(values) -> str:
    """All-or-nothing block: none filled, all filled, or somewhere between."""
    values = list(values)
    filled = sum(1 for v in values if is_filled(v))
    if filled == 0:
        return CompletionStatus.NOT_STARTED
    if filled == len(values):
        return CompletionStatus.COMPLETE
    return CompletionStatus.IN_PROGRESS


def record_block(record, fields) -> str:
    """contact_block over attributes of one record; a missing record is not_started."""
    if record is None:
        return CompletionStatus.NOT_STARTED
    return contact_block(getattr(record, f, None) for f in fields)


def boolean_confirmation(flag) -> str:
    """A single confirmation flag has no in-between state."""
    return CompletionStatus.COMPLETE if flag else CompletionStatus.NOT_STARTED


def collection_selection(rows) -> str:
    """Any selected row completes the section.

    Catalog rows without a selection are in_progress; no rows at all is
    not_started. The number of selected rows does not matter.
    """
    rows = list(rows)
    if not rows:
        return CompletionStatus.NOT_STARTED
    if any(getattr(r, "selected", False) for r in rows):
        return CompletionStatus.COMPLETE
    return CompletionStatus.IN_PROGRESS


def per_row_completeness(rows, fields) -> str:
    """Every persisted row must have every field filled."""
    rows = list(rows)
    if not rows:
        return CompletionStatus.NOT_STARTED
    complete = sum(1 for r in rows if count_filled(r, fields) == len(fields))
    if complete == len(rows):
        return CompletionStatus.COMPLETE
    return CompletionStatus.IN_PROGRESS


def conditional_record(record, predicate) -> str:
    """Missing record: not_started; predicate holds: complete; else in_progress."""
    if record is None:
        return CompletionStatus.NOT_STARTED
    return CompletionStatus.COMPLETE if predicate(record) else CompletionStatus.IN_PROGRESS


def lab_network_ready(network) -> bool:
    """Network type and coordination contact set; "other" also needs acknowledgement."""
    if not (is_filled(network.network_type) and is_filled(network.coordination_contact_name)):
        return False
    return network.network_type != "other" or bool(network.integration_acknowledged)
