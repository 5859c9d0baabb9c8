"""
Per-request access to the relational store.

Each request gets its own StoreGateway wrapping its own session, with the
caller's identity attached so the store's row-level policies can compare it
to the owner column of the rows being touched.
"""
import json
from contextlib import contextmanager
from typing import Iterator, Optional, Type, TypeVar

from fastapi import Depends
from sqlalchemy import event, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from .auth import Caller, get_current_caller
from .database import Base, get_db
from .logging_config import db_logger
from .responses import upstream_failure

ModelT = TypeVar("ModelT", bound=Base)


def publish_claims(session: Session, transaction, connection) -> None:
    """Set request.jwt.claims for the transaction that just began; set_config(..., true) ends with it."""
    connection.execute(
        text("select set_config('request.jwt.claims', :claims, true)"),
        {"claims": session.info["jwt_claims"]},
    )


class StoreGateway:
    """Scoped store client for one request."""

    def __init__(self, session: Session, caller: Optional[Caller] = None):
        self.session = session
        self.caller = caller
        self.attach_identity()

    @property
    def caller_id(self) -> Optional[str]:
        return self.caller.id if self.caller else None

    def attach_identity(self) -> None:
        """Expose the caller's claims to the store for row-level policy evaluation.

        Every commit or rollback ends the transaction holding the claims, so
        they are published again at the start of each new one.
        """
        self.session.info["caller_id"] = self.caller_id
        if self.session.get_bind().dialect.name != "postgresql":
            return

        claims = self.caller.claims if self.caller else {"role": "anon"}
        self.session.info["jwt_claims"] = json.dumps(claims, default=str)
        if not event.contains(self.session, "after_begin", publish_claims):
            event.listen(self.session, "after_begin", publish_claims)

        if self.session.in_transaction():
            with self.upstream("attach_identity"):
                publish_claims(self.session, None, self.session.connection())

    @contextmanager
    def upstream(self, operation: str) -> Iterator[None]:
        """Map store errors: integrity violations propagate, everything else is an upstream failure."""
        try:
            yield
        except IntegrityError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            db_logger.error(
                f"Store call failed: {operation}",
                error=e,
                operation=operation,
                caller_id=self.caller_id,
            )
            upstream_failure()

    def query(self, *entities) -> Query:
        return self.session.query(*entities)

    def get(self, model: Type[ModelT], id: int) -> Optional[ModelT]:
        with self.upstream(f"get {model.__tablename__}"):
            return self.session.get(model, id)

    def first(self, query: Query):
        with self.upstream("first"):
            return query.first()

    def all(self, query: Query) -> list:
        with self.upstream("all"):
            return query.all()

    def count(self, query: Query) -> int:
        """Exact row count for a query, issued as a separate aggregate read."""
        with self.upstream("count"):
            return self.session.execute(
                select(func.count()).select_from(query.order_by(None).subquery())
            ).scalar_one()

    def insert(self, row: ModelT) -> ModelT:
        """Add a row and commit; a unique violation surfaces as IntegrityError."""
        with self.upstream(f"insert {row.__tablename__}"):
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        return row

    def save(self, row: ModelT) -> ModelT:
        """Commit pending changes to a loaded row."""
        with self.upstream(f"update {row.__tablename__}"):
            self.session.commit()
            self.session.refresh(row)
        return row

    def delete(self, row: Base) -> None:
        with self.upstream(f"delete {row.__tablename__}"):
            self.session.delete(row)
            self.session.commit()


def get_gateway(
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_current_caller),
) -> StoreGateway:
    """Build the gateway for the current request."""
    return StoreGateway(db, caller)
