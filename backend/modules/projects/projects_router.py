"""
项目API路由
"""

from typing import Literal, Optional
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.pagination import PaginationParams
from core.security import CurrentUser, get_current_user, get_optional_user, require_admin
from schemas import BatchIds, success, created, paginate
from utils.background_tasks import BackgroundTaskHelper

from .projects_schemas import (
    ProjectCreate, ProjectUpdate, ProjectInfo, ProjectType, ProjectStatus,
    ProjectStatusBatch, ProjectFeaturedBatch
)
from .projects_services import ProjectService, project_paginator

router = APIRouter()


def _dump(project) -> dict:
    return ProjectInfo.model_validate(project).model_dump()


@router.get("")
async def list_projects(
    status: Optional[Literal["completed", "in_progress", "archived", "draft", "all"]] = None,
    type: Optional[ProjectType] = None,
    featured: Optional[bool] = None,
    tech: Optional[str] = None,
    keyword: Optional[str] = None,
    pagination: PaginationParams = Depends(project_paginator.dependency()),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """项目列表"""
    result = await ProjectService(db).list_projects(
        user,
        status=status,
        project_type=type,
        featured=featured,
        tech=tech,
        keyword=keyword,
        page=pagination.page,
        limit=pagination.limit
    )
    return paginate(result, "projects")


@router.get("/stats/tech-stack")
async def tech_stack_stats(db: AsyncSession = Depends(get_db)):
    """技术栈统计"""
    return success(await ProjectService(db).tech_stack_stats(), "获取技术栈统计成功")


@router.get("/timeline")
async def project_timeline(db: AsyncSession = Depends(get_db)):
    """项目时间线（按年份分组）"""
    return success(await ProjectService(db).timeline(), "获取项目时间线成功")


@router.post("/batch-delete")
async def batch_delete_projects(
    data: BatchIds,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """批量删除项目"""
    result = await ProjectService(db).batch_delete(data.ids, user)
    return success(result.to_dict(), "批量删除完成")


@router.post("/batch-update-status")
async def batch_update_project_status(
    data: ProjectStatusBatch,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """批量修改项目状态"""
    result = await ProjectService(db).batch_update_status(data.ids, data.status, user)
    return success(result.to_dict(), "批量修改状态完成")


@router.post("/batch-update-featured")
async def batch_update_project_featured(
    data: ProjectFeaturedBatch,
    user: CurrentUser = Depends(require_admin()),
    db: AsyncSession = Depends(get_db)
):
    """批量设置精选（管理员）"""
    result = await ProjectService(db).batch_update_featured(data.ids, data.is_featured)
    return success(result.to_dict(), "批量设置精选完成")


@router.get("/{project_id}")
async def get_project(
    project_id: int,
    background_tasks: BackgroundTasks,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """项目详情，浏览量在响应后异步累加"""
    project = await ProjectService(db).get_visible_project(project_id, user)
    background_tasks.add_task(BackgroundTaskHelper.run_with_db, ProjectService.increment_views, project.id)
    return success(_dump(project))


@router.post("/{project_id}/view")
async def record_project_view(
    project_id: int,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """记录一次浏览"""
    service = ProjectService(db)
    project = await service.get_visible_project(project_id, user)
    view_count = await service.record_view(project)
    return success({"view_count": view_count}, "浏览量已增加")


@router.post("", status_code=201)
async def create_project(
    data: ProjectCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """创建项目"""
    project = await ProjectService(db).create_project(data, user.id)
    return created(_dump(project), "项目创建成功")


@router.put("/{project_id}")
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """更新项目（作者或管理员）"""
    service = ProjectService(db)
    project = await service.get_owned_project(project_id, user, "编辑")
    project = await service.update_project(project, data)
    return success(_dump(project), "项目更新成功")


@router.delete("/{project_id}")
async def delete_project(
    project_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """删除项目（作者或管理员）"""
    service = ProjectService(db)
    project = await service.get_owned_project(project_id, user, "删除")
    await service.delete_project(project)
    return success(message="项目删除成功")
