# src/gymledger/dao/auditing/member_history_dao.py

from sqlalchemy.ext.asyncio import AsyncSession
from gymledger.dao.base_dao import BaseDao
from gymledger.models import MemberHistory

class MemberHistoryDao(BaseDao[MemberHistory]):
    def __init__(self, db_session: AsyncSession):
        super().__init__(MemberHistory, db_session)
