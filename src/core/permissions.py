from typing import Any


def is_owner(principal_owner_id: Any, record_owner_id: Any) -> bool:
    """True when the principal owns the record.

    Ids are compared in their string form because they reach us as ints from
    the database and as strings from path parameters or tokens.
    """
    if principal_owner_id is None or record_owner_id is None:
        return False
    return str(principal_owner_id).strip() == str(record_owner_id).strip()
