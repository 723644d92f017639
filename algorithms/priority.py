# algorithms/priority.py
"""
Ordering of blood requests shown to donors: most urgent first, then nearest.
"""

URGENCY_LEVELS = ['Critical', 'High', 'Medium', 'Low']

URGENCY_ORDER = {level: rank for rank, level in enumerate(URGENCY_LEVELS)}


def urgency_rank(urgency):
    """Critical -> 0 ... Low -> 3; unknown levels sort after Low."""
    return URGENCY_ORDER.get(urgency, len(URGENCY_LEVELS))


def sort_by_urgency_then_distance(requests):
    """
    Sort request dicts carrying ``urgency`` and ``distance_km``.

    Returns a new list; the input is left untouched.
    """
    return sorted(
        requests,
        key=lambda r: (urgency_rank(r.get('urgency')), r.get('distance_km', 0)),
    )
