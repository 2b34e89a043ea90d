"""
留言板业务逻辑
"""

import logging
import random
from typing import Optional, Sequence, List, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, func, and_, or_

from core.batch import BatchResult, run_batch
from core.errors import BusinessException, ErrorCode, NotFoundException, PermissionException, ValidationException
from core.pagination import PageResult, paginate
from core.security import CurrentUser, can_act

from .guestbook_models import Message
from .guestbook_schemas import MessageCreate, MessageUpdate, MessageInfo, MessageAdminInfo, MessageStats

logger = logging.getLogger(__name__)

# 卡片背景色
COLORS = (
    '#FFE4E1', '#E6E6FA', '#F0E68C', '#E0FFFF', '#FFE4B5',
    '#FFDAB9', '#E0E0E0', '#F5F5DC', '#FFF0F5', '#F0FFF0'
)


def pick_color(rng: Optional[random.Random] = None) -> str:
    """从调色板中随机选择一个颜色，可传入固定种子的 Random 以获得确定结果"""
    return (rng or random).choice(COLORS)


class MessageService:
    """留言服务"""

    def __init__(self, db: AsyncSession, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng

    async def get_message(self, message_id: int) -> Optional[Message]:
        result = await self.db.execute(
            select(Message)
            .where(Message.id == message_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def require_message(self, message_id: int) -> Message:
        message = await self.get_message(message_id)
        if not message:
            raise NotFoundException("留言")
        return message

    async def require_approved_message(self, message_id: int) -> Message:
        """公开操作只作用于已通过的留言，其余按不存在处理"""
        message = await self.require_message(message_id)
        if message.status != "approved":
            raise NotFoundException("留言")
        return message

    async def get_owned_message(self, message_id: int, user: CurrentUser, action: str = "操作") -> Message:
        message = await self.require_message(message_id)
        if not can_act(user, message.user_id):
            raise PermissionException(f"无权{action}此留言")
        return message

    @staticmethod
    def _keyword_condition(keyword: str):
        return or_(Message.content.contains(keyword), Message.nickname.contains(keyword))

    async def _approved_replies(self, parent_ids: List[int]) -> Dict[int, List[dict]]:
        if not parent_ids:
            return {}
        result = await self.db.execute(
            select(Message)
            .where(and_(Message.reply_to_id.in_(parent_ids), Message.status == "approved"))
            .order_by(Message.created_at, Message.id)
            .execution_options(populate_existing=True)
        )
        grouped: Dict[int, List[dict]] = {}
        for reply in result.scalars().all():
            grouped.setdefault(reply.reply_to_id, []).append(MessageInfo.model_validate(reply).model_dump())
        return grouped

    async def list_public(
        self,
        keyword: Optional[str] = None,
        mood: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> PageResult:
        """公开留言墙：已通过的顶级留言，附带已通过的回复"""
        conditions = [Message.status == "approved", Message.reply_to_id.is_(None)]
        if keyword:
            conditions.append(self._keyword_condition(keyword))
        if mood:
            conditions.append(Message.mood == mood)

        stmt = (
            select(Message)
            .where(and_(*conditions))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await paginate(self.db, stmt, page, limit)

        replies = await self._approved_replies([m.id for m in result.items])
        items = []
        for message in result.items:
            item = MessageInfo.model_validate(message).model_dump()
            item["replies"] = replies.get(message.id, [])
            items.append(item)
        result.items = items
        return result

    async def list_admin(
        self,
        keyword: Optional[str] = None,
        status: str = "all",
        page: int = 1,
        limit: int = 10
    ) -> PageResult:
        """留言管理列表（包含回复与待审核留言）"""
        conditions = []
        if keyword:
            conditions.append(self._keyword_condition(keyword))
        if status and status != "all":
            conditions.append(Message.status == status)

        stmt = select(Message)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(Message.created_at.desc(), Message.id.desc()).execution_options(populate_existing=True)
        return await paginate(
            self.db, stmt, page, limit,
            transformer=lambda m: MessageAdminInfo.model_validate(m).model_dump()
        )

    async def stats(self) -> dict:
        """按状态统计留言数量"""
        result = await self.db.execute(
            select(Message.status, func.count(Message.id)).group_by(Message.status)
        )
        counts = {row[0]: row[1] for row in result.all()}
        return MessageStats(
            total=sum(counts.values()),
            pending=counts.get("pending", 0),
            approved=counts.get("approved", 0),
            rejected=counts.get("rejected", 0)
        ).model_dump()

    async def create_message(
        self,
        data: MessageCreate,
        user: Optional[CurrentUser],
        ip: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Message:
        """发表留言：登录用户直接通过，匿名留言待审核"""
        nickname = data.nickname.strip() if data.nickname else None
        if not user and not nickname:
            raise ValidationException("请提供昵称")

        if data.reply_to_id:
            target = await self.get_message(data.reply_to_id)
            if not target:
                raise BusinessException(ErrorCode.GUESTBOOK_INVALID_REPLY, "回复的留言不存在")
            if target.reply_to_id is not None:
                raise BusinessException(ErrorCode.GUESTBOOK_INVALID_REPLY, "只能回复顶级留言")

        message = Message(
            user_id=user.id if user else None,
            nickname=nickname or user.username,
            email=data.email or (user.email if user else None),
            avatar=user.avatar if user else None,
            content=data.content,
            mood=data.mood,
            reply_to_id=data.reply_to_id,
            ip=ip,
            browser=user_agent[:500] if user_agent else None,
            color=pick_color(self.rng),
            status="approved" if user else "pending",
            likes=0
        )
        self.db.add(message)
        await self.db.commit()
        logger.info(f"新留言: {message.nickname} (ID: {message.id}, 状态: {message.status})")
        return await self.get_message(message.id)

    async def update_message(self, message: Message, data: MessageUpdate) -> Message:
        if data.content is not None:
            message.content = data.content
        if data.mood is not None:
            message.mood = data.mood
        await self.db.commit()
        return await self.get_message(message.id)

    async def delete_message(self, message: Message):
        """删除留言及其直接回复"""
        await self.db.execute(delete(Message).where(Message.reply_to_id == message.id))
        await self.db.delete(message)
        await self.db.commit()

    async def set_status(self, message: Message, status: str) -> Message:
        message.status = status
        await self.db.commit()
        return await self.get_message(message.id)

    async def like(self, message: Message) -> int:
        """点赞（原子累加）"""
        await self.db.execute(
            update(Message)
            .where(Message.id == message.id)
            .values(likes=Message.likes + 1, updated_at=Message.updated_at)
        )
        await self.db.commit()
        refreshed = await self.get_message(message.id)
        return refreshed.likes

    async def batch_delete(self, ids: Sequence[int]) -> BatchResult:
        """批量删除留言（连同直接回复）"""
        async def action(messages: List[Message]) -> int:
            message_ids = [m.id for m in messages]
            await self.db.execute(delete(Message).where(Message.reply_to_id.in_(message_ids)))
            await self.db.execute(delete(Message).where(Message.id.in_(message_ids)))
            return len(message_ids)

        return await run_batch(
            self.db, Message, ids, action,
            resource="留言", label="批量删除留言"
        )

    async def batch_set_status(self, ids: Sequence[int], status: str) -> BatchResult:
        """批量审核留言"""
        async def action(messages: List[Message]) -> int:
            for message in messages:
                message.status = status
            return len(messages)

        return await run_batch(
            self.db, Message, ids, action,
            resource="留言", label="批量审核留言"
        )
