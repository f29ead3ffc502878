"""Primary key lookups for caller-supplied ids."""

from routekeeper.domain.validation import fits_integer_column


def get_row(session, model, row_id):
    """``session.get`` that treats ids outside the INTEGER range as missing."""
    if isinstance(row_id, int) and not fits_integer_column(row_id):
        return None
    return session.get(model, row_id)
