"""
Collective Group Validator

Replica/device groups of collective ops are a 2-D grid of process ids, one
row per group. A valid grid partitions the ids ``[0, N)``.
"""

import logging
from typing import Any, List, Optional

from ..shared.errors import InvalidReplicaGroups
from ..utils.config import REPLICA_ID_PADDING
from .attributes import decode_rows

logger = logging.getLogger(__name__)


def verify_replica_groups(replica_groups: Any, all_groups_must_have_same_size: bool,
                          expected_group_size: Optional[int] = None) -> List[List[int]]:
    """
    Validate a replica group grid and return it as a list of rows.

    Rules:
        1. the grid is two-dimensional and holds at least one id besides the
           padding id
        2. with ``all_groups_must_have_same_size`` every row has one length
        3. the ids form a permutation of [0, N), N being the id count; the
           padding id -1 is skipped when groups may differ in size
        4. with ``expected_group_size`` every group has that many ids

    A failing rule 1 stops the check. Rules 2-4 are all evaluated: the first
    violation becomes the error message and the others become its notes.
    """
    rows = decode_rows(replica_groups)
    if rows is None:
        raise InvalidReplicaGroups("replica groups should be a rank 2 tensor")
    allow_padding = not all_groups_must_have_same_size
    ids = [replica_id for row in rows for replica_id in row
           if not (allow_padding and replica_id == REPLICA_ID_PADDING)]
    if not ids:
        raise InvalidReplicaGroups("replica groups should not be empty")

    violations: List[str] = []

    if all_groups_must_have_same_size:
        first = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != first:
                violations.append(
                    f"replica groups should have the same size: group 0 has {first} ids "
                    f"but group {i} has {len(row)}")
                break

    seen = set()
    id_errors = []
    for replica_id in ids:
        if replica_id < 0:
            id_errors.append(f"Invalid replica id {replica_id}")
        elif replica_id in seen:
            id_errors.append(f"replica id #{replica_id} seen more than once")
        seen.add(replica_id)
    for replica_id in range(len(ids)):
        if replica_id not in seen:
            id_errors.append(f"replica id #{replica_id} not seen in replica groups")
            break
    if id_errors:
        violations.append(id_errors[0])

    if expected_group_size is not None:
        for i, row in enumerate(rows):
            size = sum(1 for r in row if not (allow_padding and r == REPLICA_ID_PADDING))
            if size != expected_group_size:
                violations.append(
                    f"group size of replica_groups must be {expected_group_size}, "
                    f"but group {i} has {size}")
                break

    if violations:
        logger.debug(f"replica groups {rows} rejected: {violations}")
        raise InvalidReplicaGroups(violations[0], notes=violations[1:])
    return rows


def group_size(rows: List[List[int]]) -> int:
    """Number of non-padding ids in the largest group."""
    return max(sum(1 for r in row if r != REPLICA_ID_PADDING) for row in rows)
