"""PostgreSQL record store built on psycopg 3."""

import logging
from contextlib import contextmanager
from dataclasses import fields
from datetime import date, datetime
from typing import Any, Iterator, TypeVar

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from chocan.exceptions import ConcurrencyConflictError, StoreUnavailableError
from chocan.query.composer import FieldPredicate, Query, plain_value
from chocan.query.metadata import Comparison, EntityMetadata, metadata_for

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OPERATOR_SQL = {"eq": "=", "gt": ">", "gte": ">=", "lt": "<", "lte": "<="}


class PostgresRecordStore:
    """Record store persisting each entity type in its own table.

    Every call opens its own connection and releases it before returning
    (or, for ``query``, when the returned generator is exhausted or closed).
    """

    TABLE_DDL = {
        "members": """
            CREATE TABLE IF NOT EXISTS members (
                id SERIAL PRIMARY KEY,
                name VARCHAR(25) NOT NULL,
                email VARCHAR(100) NOT NULL DEFAULT '',
                street_address VARCHAR(100) NOT NULL DEFAULT '',
                city VARCHAR(50) NOT NULL DEFAULT '',
                state VARCHAR(20) NOT NULL DEFAULT '',
                zip_code INTEGER NOT NULL DEFAULT 0,
                status VARCHAR(20) NOT NULL DEFAULT 'active',
                version INTEGER NOT NULL DEFAULT 0
            )
        """,
        "providers": """
            CREATE TABLE IF NOT EXISTS providers (
                id SERIAL PRIMARY KEY,
                name VARCHAR(25) NOT NULL,
                email VARCHAR(100) NOT NULL DEFAULT '',
                street_address VARCHAR(100) NOT NULL DEFAULT '',
                city VARCHAR(50) NOT NULL DEFAULT '',
                state VARCHAR(20) NOT NULL DEFAULT '',
                zip_code INTEGER NOT NULL DEFAULT 0,
                version INTEGER NOT NULL DEFAULT 0
            )
        """,
        "products": """
            CREATE TABLE IF NOT EXISTS products (
                id SERIAL PRIMARY KEY,
                name VARCHAR(25) NOT NULL,
                cost NUMERIC(10, 2) NOT NULL DEFAULT 0,
                version INTEGER NOT NULL DEFAULT 0
            )
        """,
        "transactions": """
            CREATE TABLE IF NOT EXISTS transactions (
                id SERIAL PRIMARY KEY,
                provider_id INTEGER NOT NULL,
                member_id INTEGER NOT NULL,
                product_id INTEGER NOT NULL,
                product_cost NUMERIC(10, 2) NOT NULL DEFAULT 0,
                service_date DATE NOT NULL,
                service_comment VARCHAR(100) NOT NULL DEFAULT '',
                status VARCHAR(20) NOT NULL DEFAULT 'accepted',
                created TIMESTAMPTZ NOT NULL DEFAULT now(),
                version INTEGER NOT NULL DEFAULT 0
            )
        """,
    }

    def __init__(self, connection_string: str) -> None:
        """Initialize the store.

        Parameters
        ----------
        connection_string : str
            PostgreSQL connection string.
        """
        self.connection_string = connection_string

    @contextmanager
    def _connect(self) -> Iterator[psycopg.Connection]:
        try:
            with psycopg.connect(self.connection_string, row_factory=dict_row) as conn:
                yield conn
        except psycopg.OperationalError as e:
            logger.error("PostgreSQL unavailable: %s", e)
            raise StoreUnavailableError(str(e)) from e

    def create_tables(self) -> None:
        """Create all entity tables if they don't exist."""
        with self._connect() as conn:
            with conn.cursor() as cur:
                for ddl in self.TABLE_DDL.values():
                    cur.execute(ddl)
            conn.commit()
        logger.info("PostgreSQL tables ready: %s", list(self.TABLE_DDL))

    def insert(self, entity_type: type[T], entity: T) -> T:
        metadata = metadata_for(entity_type)
        columns = [c for c in _columns(entity_type) if c != metadata.id_field]
        statement = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) RETURNING {id}").format(
            table=sql.Identifier(metadata.collection),
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
            id=sql.Identifier(metadata.id_field),
        )
        params = [plain_value(getattr(entity, c)) for c in columns]

        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(statement, params)
                row = cur.fetchone()
            conn.commit()

        setattr(entity, metadata.id_field, row[metadata.id_field])
        return entity

    def get(self, entity_type: type[T], entity_id: Any) -> T | None:
        metadata = metadata_for(entity_type)
        statement = sql.SQL("SELECT * FROM {table} WHERE {id} = %s").format(
            table=sql.Identifier(metadata.collection),
            id=sql.Identifier(metadata.id_field),
        )
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(statement, [entity_id])
                row = cur.fetchone()
        return entity_type(**row) if row else None

    def update(self, entity_type: type[T], entity: T) -> int:
        """Replace all columns if the stored version still matches."""
        metadata = metadata_for(entity_type)
        columns = [c for c in _columns(entity_type) if c not in (metadata.id_field, "version")]
        statement = sql.SQL(
            "UPDATE {table} SET {assignments}, version = version + 1 "
            "WHERE {id} = %s AND version = %s"
        ).format(
            table=sql.Identifier(metadata.collection),
            assignments=sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(c)) for c in columns
            ),
            id=sql.Identifier(metadata.id_field),
        )
        entity_id = getattr(entity, metadata.id_field)
        params = [plain_value(getattr(entity, c)) for c in columns]
        params += [entity_id, entity.version]

        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(statement, params)
                count = cur.rowcount
            conn.commit()

        if count == 0:
            raise ConcurrencyConflictError(
                f"{entity_type.__name__} {entity_id} was deleted or modified concurrently"
            )
        entity.version += 1
        return count

    def delete(self, entity_type: type[T], entity_id: Any) -> T | None:
        metadata = metadata_for(entity_type)
        statement = sql.SQL("DELETE FROM {table} WHERE {id} = %s RETURNING *").format(
            table=sql.Identifier(metadata.collection),
            id=sql.Identifier(metadata.id_field),
        )
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(statement, [entity_id])
                row = cur.fetchone()
            conn.commit()
        return entity_type(**row) if row else None

    def query(self, entity_type: type[T], query: Query) -> Iterator[T]:
        """Stream matching rows through a server-side cursor."""
        metadata = metadata_for(entity_type)
        statement, params = compose_select(metadata, query)

        with self._connect() as conn:
            with conn.cursor(name=f"{metadata.collection}_query") as cur:
                cur.execute(statement, params)
                for row in cur:
                    yield entity_type(**row)


def _columns(entity_type: type) -> list[str]:
    return [f.name for f in fields(entity_type)]


def compose_select(metadata: EntityMetadata, query: Query) -> tuple[sql.Composed, list[Any]]:
    """Translate a query into SELECT ... WHERE ... ORDER BY ... OFFSET ... LIMIT."""
    params: list[Any] = []
    conditions = []
    for field_filter in query.filters:
        alternatives = []
        for predicate in field_filter.predicates:
            clause, value = _predicate_sql(predicate)
            alternatives.append(clause)
            params.append(value)
        conditions.append(sql.SQL("({})").format(sql.SQL(" OR ").join(alternatives)))

    if query.after_id is not None:
        conditions.append(sql.SQL("{} > %s").format(sql.Identifier(metadata.id_field)))
        params.append(query.after_id)

    where = sql.SQL("")
    if conditions:
        where = sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)

    # Identifier is always the final key so ties keep storage order
    order_terms = [
        sql.SQL("{} {}").format(sql.Identifier(t.field), sql.SQL("DESC" if t.descending else "ASC"))
        for t in query.ordering
    ]
    order_terms.append(sql.SQL("{} ASC").format(sql.Identifier(metadata.id_field)))

    statement = sql.SQL("SELECT * FROM {table}{where} ORDER BY {order} OFFSET %s LIMIT %s").format(
        table=sql.Identifier(metadata.collection),
        where=where,
        order=sql.SQL(", ").join(order_terms),
    )
    params += [query.offset, query.limit]
    return statement, params


def _predicate_sql(predicate: FieldPredicate) -> tuple[sql.Composed, Any]:
    column = sql.Identifier(predicate.field.name)

    if predicate.field.comparison == Comparison.CONTAINS:
        escaped = _escape_like(str(predicate.value))
        if predicate.operator == "co":
            return sql.SQL("{}::text ILIKE %s").format(column), f"%{escaped}%"
        if predicate.operator == "sw":
            return sql.SQL("{}::text ILIKE %s").format(column), f"{escaped}%"
        return sql.SQL("lower({}::text) = lower(%s)").format(column), str(predicate.value)

    operator = sql.SQL(_OPERATOR_SQL[predicate.operator])
    if isinstance(predicate.value, date) and not isinstance(predicate.value, datetime):
        return sql.SQL("{}::date {} %s").format(column, operator), predicate.value
    return sql.SQL("{} {} %s").format(column, operator), predicate.value


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
