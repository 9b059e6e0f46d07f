"""Build the LIMIT/OFFSET clause."""

from .data_types import LimitInput, SQLClause


def encode_limit(limit: LimitInput, start_idx: int) -> SQLClause:
    """Build LIMIT $N, adding OFFSET $N+1 only for a positive offset."""
    sql = f"LIMIT ${start_idx}"
    params: list[int] = [limit.top_k]
    if limit.offset > 0:
        sql += f" OFFSET ${start_idx + 1}"
        params.append(limit.offset)
    return SQLClause(sql=sql, params=params)
