"""Collections with exactly one default entry — shared by the address book and payment registry.

Rules:
- The first entry ever added becomes the default; later additions never are.
- Removing the default promotes the first remaining entry.
- ``set_default`` moves the flag; there is never more than one default and,
  while the collection is non-empty, never fewer.
- Removing an unknown id is a successful no-op (idempotent double taps).
"""

import json
from dataclasses import dataclass

from protean import atomic_change
from protean.exceptions import ValidationError


@dataclass(frozen=True)
class DefaultEvents:
    """Event classes an aggregate raises for each single-default mutation."""

    added: type
    updated: type
    removed: type
    default_changed: type


def check_single_default(entries, entity_name: str) -> None:
    """Raise unless a non-empty collection has exactly one default entry."""
    if not entries:
        return
    defaults = [entry for entry in entries if entry.is_default]
    if len(defaults) != 1:
        raise ValidationError({"is_default": [f"Exactly one {entity_name.lower()} must be the default"]})


def check_unique_ids(entries, entity_name: str) -> None:
    ids = [entry.id for entry in entries]
    if len(ids) != len(set(ids)):
        raise ValidationError({"id": [f"{entity_name} ids must be unique"]})


class DefaultedEntries:
    """Single-default bookkeeping for one ``HasMany`` field of an aggregate.

    Works through the ``add_<field>``/``remove_<field>`` methods protean
    generates, so the aggregate's invariants run after every mutation.
    Only the fields named in ``updatable`` can be changed by ``update``.
    """

    def __init__(self, aggregate, field: str, entity_name: str, events: DefaultEvents, updatable: frozenset):
        self.aggregate = aggregate
        self.field = field
        self.entity_name = entity_name
        self.events = events
        self.updatable = updatable

    @property
    def entries(self) -> list:
        return list(getattr(self.aggregate, self.field))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find(self, entry_id):
        return next((entry for entry in self.entries if entry.id == entry_id), None)

    def default(self):
        return next((entry for entry in self.entries if entry.is_default), None)

    def get(self, entry_id):
        entry = self.find(entry_id)
        if entry is None:
            raise ValidationError({"id": [f"{self.entity_name} {entry_id} not found"]})
        return entry

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add(self, entry):
        if self.find(entry.id) is not None:
            raise ValidationError({"id": [f"{self.entity_name} {entry.id} already exists"]})

        with atomic_change(self.aggregate):
            # First entry is always default
            entry.is_default = not self.entries
            getattr(self.aggregate, f"add_{self.field}")(entry)

        self.aggregate.raise_(self.events.added(entry_id=entry.id, is_default=entry.is_default))
        return entry

    def update(self, entry_id, **changes):
        """Merge ``changes`` into the entry. The default flag moves only through ``set_default``."""
        entry = self.get(entry_id)

        if changes.pop("id", entry_id) != entry_id:
            raise ValidationError({"id": [f"{self.entity_name} id cannot be changed"]})

        make_default = changes.pop("is_default", None)
        if make_default is False and entry.is_default:
            raise ValidationError(
                {"is_default": [f"Choose another default {self.entity_name.lower()} instead of unsetting this one"]}
            )

        unknown = sorted(set(changes) - self.updatable)
        if unknown:
            raise ValidationError({field: ["Unknown field"] for field in unknown})

        with atomic_change(self.aggregate):
            for field, value in changes.items():
                setattr(entry, field, value)

        if changes:
            changed_fields = json.dumps(sorted(changes))
            self.aggregate.raise_(self.events.updated(entry_id=entry_id, changed_fields=changed_fields))
        if make_default:
            self.set_default(entry_id)
        return entry

    def remove(self, entry_id):
        """Remove an entry. Returns the removed entry, or None when there was nothing to remove."""
        entry = self.find(entry_id)
        if entry is None:
            return None

        was_default = entry.is_default
        promoted_id = None
        with atomic_change(self.aggregate):
            getattr(self.aggregate, f"remove_{self.field}")(entry)

            # If removed entry was default, assign default to first remaining
            remaining = self.entries
            if was_default and remaining:
                remaining[0].is_default = True
                promoted_id = remaining[0].id

        self.aggregate.raise_(self.events.removed(entry_id=entry_id, promoted_default_id=promoted_id))
        return entry

    def set_default(self, entry_id):
        entry = self.get(entry_id)

        previous = self.default()
        with atomic_change(self.aggregate):
            # Unset all defaults, then set the new one
            for existing in self.entries:
                if existing.is_default:
                    existing.is_default = False
            entry.is_default = True

        self.aggregate.raise_(
            self.events.default_changed(
                entry_id=entry_id,
                previous_default_id=previous.id if previous else None,
            )
        )
        return entry
