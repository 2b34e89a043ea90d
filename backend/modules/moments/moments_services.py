"""
动态业务逻辑
"""

import logging
from typing import Optional, Sequence, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_, or_

from core.batch import BatchResult, ownership_check, run_batch
from core.errors import NotFoundException, PermissionException
from core.pagination import PageResult, paginate
from core.security import CurrentUser, can_act

from .moments_models import Moment
from .moments_schemas import MomentCreate, MomentUpdate, MomentInfo

logger = logging.getLogger(__name__)


def can_view_moment(moment: Moment, user: Optional[CurrentUser]) -> bool:
    """公开动态对所有人可见，私密和好友可见的动态仅作者和管理员可见"""
    return moment.visibility == "public" or can_act(user, moment.user_id)


def visibility_condition(user: Optional[CurrentUser]):
    """
    列表可见范围：
    匿名 -> 仅公开；登录用户 -> 公开 + 自己的；管理员 -> 全部（返回 None）
    """
    if user is None:
        return Moment.visibility == "public"
    if user.is_admin:
        return None
    return or_(Moment.visibility == "public", Moment.user_id == user.id)


class MomentService:
    """动态服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_moments(
        self,
        user: Optional[CurrentUser],
        user_id: Optional[int] = None,
        visibility: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> PageResult:
        """动态列表（置顶优先，再按发布时间倒序）"""
        conditions = []
        scope = visibility_condition(user)
        if scope is not None:
            conditions.append(scope)
        if user_id:
            conditions.append(Moment.user_id == user_id)
        if visibility:
            conditions.append(Moment.visibility == visibility)

        stmt = select(Moment)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(
            Moment.is_pinned.desc(),
            Moment.published_at.desc(),
            Moment.id.desc()
        ).execution_options(populate_existing=True)

        return await paginate(
            self.db, stmt, page, limit,
            transformer=lambda m: MomentInfo.model_validate(m).model_dump()
        )

    async def get_moment(self, moment_id: int) -> Optional[Moment]:
        result = await self.db.execute(
            select(Moment)
            .where(Moment.id == moment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_visible_moment(self, moment_id: int, user: Optional[CurrentUser]) -> Moment:
        """不存在或无权查看时均返回 404"""
        moment = await self.get_moment(moment_id)
        if not moment or not can_view_moment(moment, user):
            raise NotFoundException("动态")
        return moment

    async def get_owned_moment(self, moment_id: int, user: CurrentUser, action: str = "操作") -> Moment:
        moment = await self.get_moment(moment_id)
        if not moment:
            raise NotFoundException("动态")
        if not can_act(user, moment.user_id):
            raise PermissionException(f"无权{action}此动态")
        return moment

    async def create_moment(self, data: MomentCreate, user_id: int) -> Moment:
        """发布动态"""
        moment = Moment(
            user_id=user_id,
            content=data.content,
            images=list(data.images),
            location=data.location or None,
            visibility=data.visibility
        )
        self.db.add(moment)
        await self.db.commit()
        logger.info(f"发布动态: ID {moment.id} (用户: {user_id})")
        return await self.get_moment(moment.id)

    async def update_moment(self, moment: Moment, data: MomentUpdate) -> Moment:
        """更新动态（只更新请求中出现的字段）"""
        update_data = data.model_dump(exclude_unset=True)
        for key in ("content", "visibility", "images"):
            if key in update_data and update_data[key] is None:
                update_data.pop(key)

        for key, value in update_data.items():
            setattr(moment, key, value)

        await self.db.commit()
        return await self.get_moment(moment.id)

    async def set_pinned(self, moment: Moment, is_pinned: bool) -> Moment:
        moment.is_pinned = is_pinned
        await self.db.commit()
        return await self.get_moment(moment.id)

    async def delete_moment(self, moment: Moment):
        await self.db.delete(moment)
        await self.db.commit()

    async def batch_delete(self, ids: Sequence[int], user: CurrentUser) -> BatchResult:
        """批量删除（仅删除自己的动态，管理员不限）"""
        async def action(moments: List[Moment]) -> int:
            await self.db.execute(delete(Moment).where(Moment.id.in_([m.id for m in moments])))
            return len(moments)

        return await run_batch(
            self.db, Moment, ids, action,
            check=ownership_check(user, "user_id", "无权删除"),
            resource="动态", label="批量删除动态"
        )
