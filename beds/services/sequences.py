"""Race-safe sequential identifiers backed by the ``Sequence`` table."""
from django.db import transaction
from django.db.models import F

from beds.models import Sequence


def next_value(name: str) -> int:
    """Increment and return the named counter.

    The ``F()`` update is a single atomic statement, and the row stays
    locked until the surrounding transaction ends, so concurrent callers
    never observe the same value.
    """
    with transaction.atomic():
        Sequence.objects.get_or_create(name=name)
        Sequence.objects.filter(name=name).update(value=F('value') + 1)
        return Sequence.objects.select_for_update().values_list('value', flat=True).get(name=name)


def next_request_id() -> str:
    return f"REQ-{next_value('request'):06d}"


def next_patient_id() -> str:
    return f"PAT-{next_value('patient'):06d}"
