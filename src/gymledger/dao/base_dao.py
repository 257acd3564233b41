import operator
from typing import Type, TypeVar, Generic, Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import inspect, and_, func, select, delete
from sqlalchemy.sql.selectable import Select
from gymledger.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)

# "field op value" conditions accepted by _where_format
_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

class BaseDao(Generic[ModelType]):
    def __init__(self, model_class: Type[ModelType], db_session: AsyncSession):
        self.model: Type[ModelType] = model_class
        self.db_session: AsyncSession = db_session
        primary_keys = inspect(model_class).primary_key
        if not primary_keys:
            raise ValueError(f"Model {model_class.__name__} does not have a primary key.")
        self.pk: str = primary_keys[0].name

    # ==============================================================================
    # 1. Object methods - ORM instances in, ORM instances out
    # ==============================================================================

    async def get_list(
        self,
        where: Optional[dict | list] = None,
        order: Optional[list] = None,
        page: int = 0,
        limit: int = 0
    ) -> list[ModelType]:
        stmt = self._quick_query(
            where=where, order=order, page=page, limit=limit
        )
        executed = await self.db_session.execute(stmt)
        return list(executed.scalars().all())

    async def get_one(
        self,
        where: Optional[dict | list] = None,
        order: Optional[list] = None
    ) -> Optional[ModelType]:
        stmt = self._quick_query(where=where, order=order)
        executed = await self.db_session.execute(stmt)
        return executed.scalars().first()

    async def get_by_pk(self, pk_value: Any) -> Optional[ModelType]:
        stmt = self._quick_query(where={self.pk: pk_value})
        executed = await self.db_session.execute(stmt)
        return executed.scalars().first()

    async def count(self, where: Optional[dict | list] = None) -> int:
        subquery_stmt = self._quick_query(where=where).subquery()
        count_stmt = select(func.count()).select_from(subquery_stmt)
        executed = await self.db_session.execute(count_stmt)
        return executed.scalar() or 0

    async def add(self, instance: ModelType, auto_flush: bool = True) -> ModelType:
        self.db_session.add(instance)
        if auto_flush:
            await self.db_session.flush()
            await self.db_session.refresh(instance)
        return instance

    async def delete(self, instance: ModelType, auto_flush: bool = True) -> None:
        await self.db_session.delete(instance)
        if auto_flush:
            await self.db_session.flush()

    # ==============================================================================
    # 2. Bulk methods - statement level, no identity map round trip
    # ==============================================================================

    async def delete_where(self, where: dict | list) -> int:
        if not where:
            return 0
        conditions = self._where_format(where)
        stmt = delete(self.model).where(*conditions).execution_options(synchronize_session="fetch")
        executed = await self.db_session.execute(stmt)
        return executed.rowcount

    # ==============================================================================
    # 3. Query building helpers
    # ==============================================================================

    def _quick_query(
        self,
        where: Optional[dict | list] = None,
        order: Optional[list] = None,
        page: int = 0,
        limit: int = 0
    ) -> Select:
        stmt = select(self.model)

        if where is not None:
            stmt = stmt.filter(*self._where_format(where))

        if order is not None:
            stmt = stmt.order_by(*order)

        if limit > 0:
            stmt = stmt.limit(limit)
            if page > 0:
                stmt = stmt.offset((page - 1) * limit)

        return stmt

    def _where_format(self, conditions: list | dict) -> list:
        if not conditions:
            return []

        processed_conditions = []
        if isinstance(conditions, dict):
            processed_conditions = [getattr(self.model, field) == value for field, value in conditions.items()]
        else:
            for condition in conditions:
                if isinstance(condition, (list, tuple)):
                    field, op, value = condition
                    column = getattr(self.model, field)
                    if op == 'in':
                        processed_conditions.append(column.in_(value))
                    elif op in _OPERATORS:
                        processed_conditions.append(_OPERATORS[op](column, value))
                    else:
                        raise ValueError(f"Unsupported operator in where clause: {op}")
                else:
                    processed_conditions.append(condition)

        if len(processed_conditions) > 1:
            processed_conditions = [and_(*processed_conditions)]
        return processed_conditions
