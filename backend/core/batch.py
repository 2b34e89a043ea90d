"""
批量操作引擎
各资源的批量删除/状态修改/合并等接口共用

流程：
1. 去重后的 ID 一次性查询出实体
2. 纯函数 partition 按“不存在 / 无权限 / 业务约束”逐项给出结果
3. 对通过的实体在同一事务中执行动作并提交
4. 动作执行失败时整体回滚，返回统一的 500 错误（不给出逐项明细）
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import AppException, ErrorCode
from .security import CurrentUser, can_act

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Accepted:
    """通过校验的条目"""
    item_id: int
    entity: Any


@dataclass(frozen=True)
class Rejected:
    """被拒绝的条目及原因"""
    item_id: int
    reason: str


Outcome = Union[Accepted, Rejected]

# 返回 None 表示允许，返回字符串表示拒绝原因
CheckFunc = Callable[[Any], Optional[str]]


def dedupe_ids(ids: Iterable[int]) -> List[int]:
    """去重并保持请求顺序"""
    seen = set()
    result = []
    for item_id in ids:
        if item_id not in seen:
            seen.add(item_id)
            result.append(item_id)
    return result


def partition(
    requested_ids: Sequence[int],
    entities: Iterable[Any],
    check: Optional[CheckFunc] = None,
    not_found_reason: str = "记录不存在"
) -> List[Outcome]:
    """
    按请求顺序为每个 ID 给出 Accepted / Rejected 结果

    不访问数据库，也不抛出异常。
    """
    by_id = {entity.id: entity for entity in entities}
    outcomes: List[Outcome] = []
    for item_id in requested_ids:
        entity = by_id.get(item_id)
        if entity is None:
            outcomes.append(Rejected(item_id, not_found_reason))
            continue
        reason = check(entity) if check else None
        if reason:
            outcomes.append(Rejected(item_id, reason))
        else:
            outcomes.append(Accepted(item_id, entity))
    return outcomes


def accepted_entities(outcomes: Iterable[Outcome]) -> List[Any]:
    return [o.entity for o in outcomes if isinstance(o, Accepted)]


def rejected_errors(outcomes: Iterable[Outcome]) -> Optional[List[dict]]:
    errors = [{"id": o.item_id, "reason": o.reason} for o in outcomes if isinstance(o, Rejected)]
    return errors or None


@dataclass
class BatchResult:
    """批量操作结果"""
    affected_count: int
    total_count: int
    errors: Optional[List[dict]] = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[Outcome], affected_count: int) -> "BatchResult":
        return cls(
            affected_count=affected_count,
            total_count=len(outcomes),
            errors=rejected_errors(outcomes)
        )

    def to_dict(self) -> dict:
        data = {
            "affected_count": self.affected_count,
            "total_count": self.total_count,
            "errors": self.errors
        }
        data.update(self.extra)
        return data


def ownership_check(
    user: CurrentUser,
    owner_attr: str = "author_id",
    message: str = "无权操作",
    describe: Optional[Callable[[Any], str]] = None
) -> CheckFunc:
    """
    生成归属校验函数：管理员或所有者通过

    Args:
        owner_attr: 实体上表示所有者的字段名
        message: 拒绝原因
        describe: 可选，生成条目描述（如文章标题）作为原因前缀
    """
    def _check(entity) -> Optional[str]:
        if can_act(user, getattr(entity, owner_attr)):
            return None
        if describe:
            return f"{describe(entity)}: {message}"
        return message
    return _check


def combine_checks(*checks: Optional[CheckFunc]) -> CheckFunc:
    """依次执行多个校验，返回第一个拒绝原因"""
    def _check(entity) -> Optional[str]:
        for check in checks:
            if check is None:
                continue
            reason = check(entity)
            if reason:
                return reason
        return None
    return _check


async def load_by_ids(db: AsyncSession, model, ids: Sequence[int]) -> List[Any]:
    """一次查询加载全部实体"""
    if not ids:
        return []
    result = await db.execute(select(model).where(model.id.in_(ids)))
    return list(result.scalars().all())


async def execute_in_transaction(
    db: AsyncSession,
    action: Callable[[], Awaitable[Any]],
    label: str = "批量操作"
) -> Any:
    """执行写操作并提交，失败时整体回滚"""
    try:
        value = await action()
        await db.commit()
        return value
    except AppException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"{label}失败，已回滚: {e}")
        raise AppException(ErrorCode.DATABASE_ERROR, f"{label}失败，所有更改已回滚") from e


async def run_batch(
    db: AsyncSession,
    model,
    ids: Sequence[int],
    action: Callable[[List[Any]], Awaitable[Optional[int]]],
    check: Optional[CheckFunc] = None,
    resource: str = "记录",
    label: str = "批量操作"
) -> BatchResult:
    """
    批量操作通用入口

    Args:
        db: 数据库会话
        model: ORM 模型类（需有 id 主键）
        ids: 请求的 ID 列表（已通过请求校验，非空）
        action: 对通过校验的实体执行的动作，可返回实际影响数，默认按实体数计
        check: 逐项校验函数
        resource: 资源名称，用于“不存在”原因
        label: 操作名称，用于日志与错误信息
    """
    unique_ids = dedupe_ids(ids)
    entities = await load_by_ids(db, model, unique_ids)
    outcomes = partition(unique_ids, entities, check, not_found_reason=f"{resource}不存在")
    targets = accepted_entities(outcomes)

    affected = 0
    if targets:
        returned = await execute_in_transaction(db, lambda: action(targets), label)
        affected = returned if isinstance(returned, int) else len(targets)

    result = BatchResult.from_outcomes(outcomes, affected)
    logger.info(
        f"{label}: 请求 {result.total_count} 项，成功 {result.affected_count} 项，"
        f"拒绝 {len(result.errors or [])} 项"
    )
    return result
