"""
项目业务逻辑
"""

import logging
from collections import Counter
from typing import Optional, Sequence, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, and_, or_, cast, String

from core.batch import BatchResult, ownership_check, run_batch
from core.errors import NotFoundException, PermissionException
from core.pagination import PageResult, Paginator, paginate
from core.security import CurrentUser, can_act

from .projects_models import Project
from .projects_schemas import ProjectCreate, ProjectUpdate, ProjectInfo

logger = logging.getLogger(__name__)

# 项目列表默认每页 12 条，最多 50 条
project_paginator = Paginator(default_limit=12, max_limit=50)

# 更新时允许显式置空的字段
NULLABLE_FIELDS = {
    "subtitle", "content", "cover_image", "demo_video", "github_url", "demo_url",
    "documentation_url", "start_date", "end_date", "duration", "category"
}


def can_view_project(project: Project, user: Optional[CurrentUser]) -> bool:
    """已完成的项目对所有人可见，其它状态仅作者和管理员可见"""
    return project.status == "completed" or can_act(user, project.author_id)


class ProjectService:
    """项目服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_projects(
        self,
        user: Optional[CurrentUser],
        status: Optional[str] = None,
        project_type: Optional[str] = None,
        featured: Optional[bool] = None,
        tech: Optional[str] = None,
        keyword: Optional[str] = None,
        page: int = 1,
        limit: int = 12
    ) -> PageResult:
        """项目列表：非管理员只能看到已完成项目"""
        conditions = []

        if not (user and user.is_admin):
            conditions.append(Project.status == "completed")
        elif status and status != "all":
            conditions.append(Project.status == status)

        if project_type:
            conditions.append(Project.project_type == project_type)

        if featured:
            conditions.append(Project.is_featured.is_(True))

        # JSON 数组按文本匹配带引号的元素，转义 % 与 _
        if tech:
            conditions.append(cast(Project.tech_stack, String).contains(f'"{tech}"', autoescape=True))

        if keyword:
            conditions.append(or_(
                Project.title.contains(keyword),
                Project.description.contains(keyword),
                Project.subtitle.contains(keyword)
            ))

        stmt = select(Project)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(
            Project.is_featured.desc(),
            Project.display_order.desc(),
            Project.created_at.desc(),
            Project.id.desc()
        ).execution_options(populate_existing=True)

        return await paginate(
            self.db, stmt, page, limit,
            transformer=lambda p: ProjectInfo.model_validate(p).model_dump()
        )

    async def get_project(self, project_id: int) -> Optional[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_visible_project(self, project_id: int, user: Optional[CurrentUser]) -> Project:
        """不存在或不可见时均返回 404"""
        project = await self.get_project(project_id)
        if not project or not can_view_project(project, user):
            raise NotFoundException("项目")
        return project

    async def get_owned_project(self, project_id: int, user: CurrentUser, action: str = "操作") -> Project:
        project = await self.get_project(project_id)
        if not project:
            raise NotFoundException("项目")
        if not can_act(user, project.author_id):
            raise PermissionException(f"无权{action}该项目")
        return project

    async def create_project(self, data: ProjectCreate, author_id: int) -> Project:
        """创建项目"""
        project = Project(**data.model_dump(), author_id=author_id, view_count=0)
        self.db.add(project)
        await self.db.commit()
        logger.info(f"创建项目: {project.title} (ID: {project.id}, 作者: {author_id})")
        return await self.get_project(project.id)

    async def update_project(self, project: Project, data: ProjectUpdate) -> Project:
        """部分更新，未出现的字段保持不变"""
        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_FIELDS
        }
        for key, value in update_data.items():
            setattr(project, key, value)

        await self.db.commit()
        return await self.get_project(project.id)

    async def delete_project(self, project: Project):
        await self.db.delete(project)
        await self.db.commit()
        logger.info(f"删除项目: {project.title} (ID: {project.id})")

    @staticmethod
    async def increment_views(db: AsyncSession, project_id: int):
        """浏览量 +1（原子更新，不修改 updated_at）"""
        await db.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(view_count=Project.view_count + 1, updated_at=Project.updated_at)
        )
        await db.commit()

    async def record_view(self, project: Project) -> int:
        """同步累加浏览量并返回新值"""
        await self.increment_views(self.db, project.id)
        refreshed = await self.get_project(project.id)
        return refreshed.view_count

    async def tech_stack_stats(self) -> List[dict]:
        """已完成项目的技术栈使用次数，按次数降序"""
        result = await self.db.execute(
            select(Project.tech_stack).where(Project.status == "completed")
        )
        counter = Counter()
        for tech_stack in result.scalars().all():
            counter.update(tech_stack or [])
        return [{"tech": tech, "count": count} for tech, count in counter.most_common()]

    async def timeline(self) -> List[dict]:
        """已完成项目按开始年份分组，年份降序"""
        result = await self.db.execute(
            select(Project)
            .where(and_(Project.status == "completed", Project.start_date.is_not(None)))
            .order_by(Project.start_date.desc(), Project.id.desc())
        )
        groups: dict = {}
        for project in result.scalars().all():
            groups.setdefault(project.start_date.year, []).append({
                "id": project.id,
                "title": project.title,
                "subtitle": project.subtitle,
                "start_date": project.start_date,
                "end_date": project.end_date,
                "cover_image": project.cover_image,
                "tech_stack": project.tech_stack or [],
                "project_type": project.project_type
            })
        return [{"year": year, "projects": groups[year]} for year in sorted(groups, reverse=True)]

    # ============ 批量操作 ============

    async def batch_delete(self, ids: Sequence[int], user: CurrentUser) -> BatchResult:
        async def action(projects: List[Project]) -> int:
            await self.db.execute(delete(Project).where(Project.id.in_([p.id for p in projects])))
            return len(projects)

        return await run_batch(
            self.db, Project, ids, action,
            check=ownership_check(user, "author_id", "无权删除"),
            resource="项目", label="批量删除项目"
        )

    async def batch_update_status(self, ids: Sequence[int], status: str, user: CurrentUser) -> BatchResult:
        async def action(projects: List[Project]) -> int:
            for project in projects:
                project.status = status
            return len(projects)

        return await run_batch(
            self.db, Project, ids, action,
            check=ownership_check(user, "author_id", "无权修改"),
            resource="项目", label="批量修改项目状态"
        )

    async def batch_update_featured(self, ids: Sequence[int], is_featured: bool) -> BatchResult:
        """批量设置精选（管理员）"""
        async def action(projects: List[Project]) -> int:
            for project in projects:
                project.is_featured = is_featured
            return len(projects)

        return await run_batch(
            self.db, Project, ids, action,
            resource="项目", label="批量设置精选"
        )
