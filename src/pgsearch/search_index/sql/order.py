"""Build the ORDER BY clause."""

from pgsearch.search_index.utils import qualified_table, quote_ident

from .data_types import OrderInput, SQLClause
from .field_type import distance_operator
from .select import find_vector_signal


def encode_order(order: OrderInput) -> SQLClause:
    """
    Build the ORDER BY expression for a query.

    An explicit order_by wins over vector ordering. Vector ordering reuses
    the $1 query vector bound by the SELECT clause and adds no parameters.
    """
    binding = order.binding

    if order.order_by is not None:
        column = quote_ident(
            binding.column_for(order.order_by.field)
            if binding is not None
            else order.order_by.field
        )
        if order.schema and order.table:
            # qualify so the column is not confused with the "score" alias
            column = f"{qualified_table(order.schema, order.table)}.{column}"
        return SQLClause(sql=f"{column} {order.order_by.direction.upper()}")

    vector_signal = find_vector_signal(order.signals)
    if vector_signal is not None:
        field_name = vector_signal[0]
        field_binding = binding.fields.get(field_name) if binding else None
        column = field_binding.column if field_binding else field_name
        similarity = field_binding.similarity if field_binding else None
        return SQLClause(
            sql=f"{quote_ident(column)} {distance_operator(similarity)} $1::vector"
        )

    return SQLClause(sql="score DESC")
