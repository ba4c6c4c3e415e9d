"""
SQL Storage Implementation

DESIGN DECISION: Expenses live in a single relational table accessed
through SQLAlchemy's asyncio ORM. Any database with an async driver
works; SQLite via aiosqlite is the default.

Criteria objects are translated to SQL clauses, so filtering,
ordering and the grouped sum all run in the database.
"""

from datetime import datetime
from decimal import Decimal
from functools import singledispatch
from typing import Optional, Sequence

from sqlalchemy import DateTime, Integer, Numeric, String, and_, func, select, true
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from family_budget.config import DatabaseSettings, get_settings
from family_budget.models.expense import Expense
from family_budget.storage.criteria import (
    AllOf,
    CategoryContains,
    Criterion,
    DateRangeCriterion,
    HasId,
    OwnedBy,
    fold_category,
)
from family_budget.storage.interface import (
    ExpenseStorageInterface,
    StorageConnectionError,
    StorageError,
)


CENT = Decimal("0.01")


class Base(DeclarativeBase):
    pass


class ExpenseRecord(Base):
    """Row in the expenses table."""
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    # SQLite lower() only folds ASCII, so the folded form is stored
    category_folded: Mapped[str] = mapped_column(String(400), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String(450), nullable=True, index=True)


@singledispatch
def to_clause(criterion: Criterion):
    """Translate a criterion into a SQLAlchemy WHERE clause."""
    raise TypeError(f"Unsupported criterion: {type(criterion).__name__}")


@to_clause.register
def _(criterion: OwnedBy):
    return ExpenseRecord.user_id == criterion.user_id


@to_clause.register
def _(criterion: HasId):
    return ExpenseRecord.id == criterion.expense_id


@to_clause.register
def _(criterion: CategoryContains):
    return ExpenseRecord.category_folded.contains(
        fold_category(criterion.text), autoescape=True
    )


@to_clause.register
def _(criterion: DateRangeCriterion):
    start, end = criterion.bounds()
    return and_(ExpenseRecord.date >= start, ExpenseRecord.date < end)


@to_clause.register
def _(criterion: AllOf):
    if not criterion.criteria:
        return true()
    return and_(*(to_clause(inner) for inner in criterion.criteria))


def _as_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


class SqlDatabase:
    """
    Owns the async engine and session factory.

    The engine is created lazily so constructing components never
    touches the database.
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self._settings = settings or get_settings().database
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    def connect(self) -> AsyncEngine:
        """Create the engine and session factory on first use."""
        if self._engine is None:
            try:
                if self._settings.is_sqlite_memory:
                    # One shared connection, or each session sees an empty database
                    engine = create_async_engine(
                        self._settings.url,
                        echo=self._settings.echo,
                        poolclass=StaticPool,
                        connect_args={"check_same_thread": False},
                    )
                else:
                    engine = create_async_engine(
                        self._settings.url,
                        echo=self._settings.echo,
                    )
            except Exception as e:
                raise StorageConnectionError(f"Failed to create database engine: {e}") from e
            self._engine = engine
            self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        return self._engine

    def session(self) -> AsyncSession:
        self.connect()
        return self._sessions()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    async def _create_all(self) -> None:
        engine = self.connect()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def create_schema(self) -> None:
        """Create the expenses table if it does not exist."""
        try:
            await self._create_all()
        except SQLAlchemyError as e:
            raise StorageConnectionError(f"Failed to create schema: {e}") from e

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessions = None


class SqlExpenseStorage(ExpenseStorageInterface):
    """
    SQLAlchemy implementation of expense storage.

    Each method runs in its own session and transaction.
    """

    def __init__(self, database: Optional[SqlDatabase] = None):
        self._db = database or SqlDatabase()

    @staticmethod
    def _to_record(expense: Expense) -> ExpenseRecord:
        return ExpenseRecord(
            amount=expense.amount,
            category=expense.category,
            category_folded=fold_category(expense.category),
            date=expense.date,
            user_id=expense.user_id,
        )

    @staticmethod
    def _to_expense(record: ExpenseRecord) -> Expense:
        return Expense(
            id=record.id,
            amount=_as_money(record.amount),
            category=record.category,
            date=record.date,
            user_id=record.user_id,
        )

    async def add(self, expense: Expense) -> Expense:
        stored = await self.add_many([expense])
        return stored[0]

    async def add_many(self, expenses: Sequence[Expense]) -> list[Expense]:
        try:
            records = [self._to_record(expense) for expense in expenses]
            async with self._db.session() as session:
                async with session.begin():
                    session.add_all(records)
            return [self._to_expense(record) for record in records]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to add expenses: {e}") from e

    async def first(self, criteria: Criterion) -> Optional[Expense]:
        try:
            stmt = (
                select(ExpenseRecord)
                .where(to_clause(criteria))
                .order_by(ExpenseRecord.date.desc(), ExpenseRecord.id.asc())
                .limit(1)
            )
            async with self._db.session() as session:
                record = (await session.execute(stmt)).scalars().first()
            return self._to_expense(record) if record is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get expense: {e}") from e

    async def find(self, criteria: Criterion) -> list[Expense]:
        try:
            stmt = (
                select(ExpenseRecord)
                .where(to_clause(criteria))
                .order_by(ExpenseRecord.date.desc(), ExpenseRecord.id.asc())
            )
            async with self._db.session() as session:
                records = (await session.execute(stmt)).scalars().all()
            return [self._to_expense(record) for record in records]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list expenses: {e}") from e

    async def replace(self, expense: Expense) -> bool:
        try:
            async with self._db.session() as session:
                async with session.begin():
                    record = await session.get(ExpenseRecord, expense.id)
                    if record is None:
                        return False
                    record.amount = expense.amount
                    record.category = expense.category
                    record.category_folded = fold_category(expense.category)
                    record.date = expense.date
                    record.user_id = expense.user_id
            return True
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update expense: {e}") from e

    async def remove(self, expense_id: int) -> bool:
        try:
            async with self._db.session() as session:
                async with session.begin():
                    record = await session.get(ExpenseRecord, expense_id)
                    if record is None:
                        return False
                    await session.delete(record)
            return True
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete expense: {e}") from e

    async def exists(self, criteria: Criterion) -> bool:
        try:
            stmt = select(ExpenseRecord.id).where(to_clause(criteria)).limit(1)
            async with self._db.session() as session:
                found = await session.scalar(stmt)
            return found is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to check expenses: {e}") from e

    async def sum_by_category(self, criteria: Criterion) -> dict[str, Decimal]:
        try:
            stmt = (
                select(ExpenseRecord.category, func.sum(ExpenseRecord.amount))
                .where(to_clause(criteria))
                .group_by(ExpenseRecord.category)
                .order_by(ExpenseRecord.category)
            )
            async with self._db.session() as session:
                rows = (await session.execute(stmt)).all()
            return {category: _as_money(total) for category, total in rows}
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to sum expenses: {e}") from e
