"""
Payment Repository

数据访问层，处理出资记录、里程碑分配和筹款汇总
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List, Dict, Any

from core.postgres_client import PostgresClient
from microservices.campaign_service.content_repository import json_dumps, load_json_object

from .models import MilestoneAllocation, Payment, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)


class PaymentRepository:
    """出资数据访问仓库"""

    def __init__(self, db: PostgresClient):
        self.db = db

        # Table names
        self.payments_table = "payments"
        self.allocations_table = "milestone_allocations"
        self.campaigns_table = "campaigns"
        self.milestones_table = "milestones"
        self.users_table = "users"

    # ====================
    # 出资记录
    # ====================

    async def create_payment(
        self,
        reference: str,
        user_id: str,
        campaign_id: str,
        amount: Decimal,
        email: Optional[str],
        payment_method: PaymentMethod,
        conn=None,
    ) -> Optional[Payment]:
        """创建待支付记录；参考号冲突时返回 None"""
        try:
            now = datetime.now(timezone.utc)
            query = f'''
                INSERT INTO {self.payments_table} (
                    id, reference, user_id, campaign_id, amount, email,
                    payment_method, status, metadata, created_at, updated_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb, $10, $10)
                ON CONFLICT (reference) DO NOTHING
                RETURNING *
            '''
            row = await self.db.query_row(
                query,
                [
                    f"pay_{uuid.uuid4().hex[:16]}",
                    reference,
                    user_id,
                    campaign_id,
                    amount,
                    email,
                    payment_method.value,
                    PaymentStatus.PENDING.value,
                    json_dumps({}),
                    now,
                ],
                conn=conn,
            )
            return self._row_to_payment(row) if row else None

        except Exception as e:
            logger.error(f"创建出资记录失败 (campaign {campaign_id}): {e}")
            raise

    async def get_payment(self, payment_id: str, conn=None, for_update: bool = False) -> Optional[Payment]:
        """获取出资记录"""
        query = f'''
            SELECT * FROM {self.payments_table}
            WHERE id = $1
            {"FOR UPDATE" if for_update else ""}
        '''
        row = await self.db.query_row(query, [payment_id], conn=conn)
        return self._row_to_payment(row) if row else None

    async def get_payment_by_reference(self, reference: str, conn=None, for_update: bool = False) -> Optional[Payment]:
        """按参考号获取出资记录"""
        query = f'''
            SELECT * FROM {self.payments_table}
            WHERE reference = $1
            {"FOR UPDATE" if for_update else ""}
        '''
        row = await self.db.query_row(query, [reference], conn=conn)
        return self._row_to_payment(row) if row else None

    async def update_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        metadata: Dict[str, Any],
        conn=None,
    ) -> Payment:
        """更新支付状态并合并元数据"""
        try:
            now = datetime.now(timezone.utc)
            query = f'''
                UPDATE {self.payments_table}
                SET status = $2,
                    metadata = COALESCE(metadata, '{{}}'::jsonb) || $3::jsonb,
                    completed_at = CASE WHEN $2 = 'completed' THEN $4 ELSE completed_at END,
                    updated_at = $4
                WHERE id = $1
                RETURNING *
            '''
            row = await self.db.query_row(query, [payment_id, status.value, json_dumps(metadata), now], conn=conn)
            return self._row_to_payment(row)

        except Exception as e:
            logger.error(f"更新支付状态失败 {payment_id}: {e}")
            raise

    async def list_user_payments(self, user_id: str) -> List[Payment]:
        """获取用户出资历史"""
        query = f'''
            SELECT p.*, c.title AS campaign_title
            FROM {self.payments_table} p
            LEFT JOIN {self.campaigns_table} c ON c.id = p.campaign_id
            WHERE p.user_id = $1
            ORDER BY p.created_at DESC
        '''
        rows = await self.db.query(query, [user_id])
        return [self._row_to_payment(row) for row in rows]

    async def list_campaign_payments(
        self, campaign_id: str, status: Optional[PaymentStatus] = None
    ) -> List[Payment]:
        """获取众筹项目的出资记录"""
        conditions = ["p.campaign_id = $1"]
        params: List[Any] = [campaign_id]
        if status:
            conditions.append("p.status = $2")
            params.append(status.value)

        query = f'''
            SELECT p.*, u.full_name AS investor_name
            FROM {self.payments_table} p
            LEFT JOIN {self.users_table} u ON u.id = p.user_id
            WHERE {" AND ".join(conditions)}
            ORDER BY p.created_at DESC
        '''
        rows = await self.db.query(query, params)
        return [self._row_to_payment(row) for row in rows]

    # ====================
    # 里程碑分配
    # ====================

    async def create_allocation(
        self, payment_id: str, milestone_id: str, amount: Decimal, conn=None
    ) -> MilestoneAllocation:
        """记录里程碑分配"""
        query = f'''
            INSERT INTO {self.allocations_table} (id, payment_id, milestone_id, amount, created_at)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
        '''
        row = await self.db.query_row(
            query,
            [f"alloc_{uuid.uuid4().hex[:16]}", payment_id, milestone_id, amount, datetime.now(timezone.utc)],
            conn=conn,
        )
        return MilestoneAllocation(**row)

    async def sum_allocations(self, payment_id: str, conn=None) -> Decimal:
        """已分配金额合计"""
        total = await self.db.fetchval(
            f"SELECT COALESCE(SUM(amount), 0) FROM {self.allocations_table} WHERE payment_id = $1",
            [payment_id],
            conn=conn,
        )
        return Decimal(total or 0)

    async def list_allocations(self, payment_id: str) -> List[MilestoneAllocation]:
        """获取出资的里程碑分配"""
        query = f'''
            SELECT a.*, m.title AS milestone_title
            FROM {self.allocations_table} a
            LEFT JOIN {self.milestones_table} m ON m.id = a.milestone_id
            WHERE a.payment_id = $1
            ORDER BY a.created_at ASC
        '''
        rows = await self.db.query(query, [payment_id])
        return [MilestoneAllocation(**row) for row in rows]

    # ====================
    # 筹款统计
    # ====================

    async def sum_completed(self, campaign_id: str, conn=None) -> Decimal:
        """已完成出资合计"""
        query = f'''
            SELECT COALESCE(SUM(amount), 0) FROM {self.payments_table}
            WHERE campaign_id = $1 AND status = $2
        '''
        total = await self.db.fetchval(query, [campaign_id, PaymentStatus.COMPLETED.value], conn=conn)
        return Decimal(total or 0)

    async def count_contributors(self, campaign_id: str) -> int:
        """去重出资人数"""
        query = f'''
            SELECT COUNT(DISTINCT user_id) FROM {self.payments_table}
            WHERE campaign_id = $1 AND status = $2
        '''
        return await self.db.fetchval(query, [campaign_id, PaymentStatus.COMPLETED.value]) or 0

    def _row_to_payment(self, row: Dict[str, Any]) -> Payment:
        return Payment(
            id=row["id"],
            reference=row["reference"],
            user_id=row["user_id"],
            campaign_id=row["campaign_id"],
            amount=row["amount"],
            email=row.get("email"),
            payment_method=PaymentMethod(row.get("payment_method") or PaymentMethod.CARD.value),
            status=PaymentStatus(row["status"]),
            metadata=load_json_object(row.get("metadata"), f"payment {row['id']}"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            completed_at=row.get("completed_at"),
            campaign_title=row.get("campaign_title"),
            investor_name=row.get("investor_name"),
        )
