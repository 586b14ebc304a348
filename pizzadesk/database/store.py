"""
Document store adapter

Collection-style CRUD over the async SQLAlchemy session, plus the two
primitives that need more than a single-document write:
- increment_counter: atomic read-increment-write of a named counter
- batch_update: one all-or-nothing write over many documents of a collection
"""
from typing import Any, Iterable, Optional, Sequence, TypeVar
from sqlalchemy import select, update, insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pizzadesk.core.exceptions import Conflict, InternalError, NotFound
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.database.models.counter import Counter

logger = get_i18n_logger(__name__)

ModelT = TypeVar("ModelT")

COUNTER_ALLOCATION_ATTEMPTS = 5


class DocumentStore:
    """Thin per-request wrapper around an AsyncSession"""

    def __init__(self, session: AsyncSession):
        self.session = session

    # === Reads ===

    async def get(self, model: type[ModelT], doc_id: str) -> Optional[ModelT]:
        return await self.session.get(model, doc_id)

    async def get_or_404(self, model: type[ModelT], doc_id: str, label: str = "Document") -> ModelT:
        document = await self.get(model, doc_id)
        if document is None:
            raise NotFound(f"{label} not found")
        return document

    async def query(
        self,
        model: type[ModelT],
        *criteria,
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        statement = select(model).where(*criteria)
        if order_by is not None:
            statement = statement.order_by(*order_by)
        if limit:
            statement = statement.limit(limit)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def first(self, model: type[ModelT], *criteria) -> Optional[ModelT]:
        result = await self.session.execute(select(model).where(*criteria).limit(1))
        return result.scalars().first()

    # === Single-document writes ===

    async def add(self, document: ModelT) -> ModelT:
        self.session.add(document)
        await self.commit()
        return document

    async def update(self, document: ModelT, values: dict[str, Any]) -> ModelT:
        for field, value in values.items():
            setattr(document, field, value)
        await self.commit()
        return document

    async def conditional_update(
        self,
        model: type[ModelT],
        doc_id: str,
        expected: dict[str, Any],
        values: dict[str, Any],
    ) -> bool:
        """
        Write `values` only if every field in `expected` still holds.

        Returns False when another writer changed the document first.
        """
        pk = model.__mapper__.primary_key[0]
        criteria = [pk == doc_id] + [getattr(model, field) == value for field, value in expected.items()]
        result = await self.session.execute(
            update(model).where(*criteria).values(**values).execution_options(synchronize_session="fetch")
        )
        await self.commit()
        return result.rowcount == 1

    async def delete(self, document: ModelT) -> None:
        await self.session.delete(document)
        await self.commit()

    # === Multi-document writes ===

    async def batch_update(
        self,
        model: type[ModelT],
        criteria: Iterable[Any],
        values: dict[str, Any],
        commit: bool = True,
    ) -> int:
        """Apply the same update to every matching document in a single statement"""
        result = await self.session.execute(
            update(model).where(*criteria).values(**values).execution_options(synchronize_session="fetch")
        )
        if commit:
            await self.commit()
        return result.rowcount

    # === Counters ===

    async def increment_counter(self, name: str) -> int:
        """
        Atomically increment a named counter and return the new value.

        Runs in its own short transaction on a dedicated connection, opened with
        the write, so concurrent callers are serialized by the database itself.
        """
        engine = self.session.bind
        for attempt in range(1, COUNTER_ALLOCATION_ATTEMPTS + 1):
            try:
                async with engine.begin() as conn:
                    result = await conn.execute(
                        update(Counter)
                        .where(Counter.name == name)
                        .values(current_number=Counter.current_number + 1)
                        .returning(Counter.current_number)
                    )
                    number = result.scalar_one_or_none()
                    if number is None:
                        await conn.execute(insert(Counter).values(name=name, current_number=1))
                        number = 1
                logger.debug("store.counter.incremented", counter=name, value=number)
                return number
            except IntegrityError:
                # Another caller created the counter row first; the update path will succeed now
                logger.debug("store.counter.retry", counter=name, attempt=attempt)
            except SQLAlchemyError as e:
                logger.error("store.counter.failed", counter=name, error=str(e))
                raise InternalError("Could not allocate a sequence number") from e

        logger.error("store.counter.failed", counter=name, error="too many attempts")
        raise InternalError("Could not allocate a sequence number")

    async def reset_counter(self, name: str, commit: bool = True) -> None:
        """Set a counter back to 0; with commit=False it joins the caller's unit of work"""
        counter = await self.session.get(Counter, name)
        if counter is None:
            self.session.add(Counter(name=name, current_number=0))
        else:
            counter.current_number = 0
        if commit:
            await self.commit()

    async def current_counter(self, name: str) -> int:
        counter = await self.session.get(Counter, name, populate_existing=True)
        return counter.current_number if counter else 0

    # === Unit of work ===

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("store.commit.conflict", error=str(e.orig))
            raise Conflict("A document with the same unique value already exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("store.commit.failed", error=str(e))
            raise InternalError() from e
