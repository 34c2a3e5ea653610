from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from closeflow.core.deps import DBSessionDep, CurrentUserDep, require_workspace_member
from closeflow.models.category import Category, CategoryKind
from closeflow.repositories.category_repository import CategoryRepository
from closeflow.schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from closeflow.services.audit_service import AuditService

router = APIRouter()


async def _load_scoped_category(db, category_id: int, user) -> Category:
    category = await CategoryRepository(db).get(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    await require_workspace_member(db, category.workspace_id, user)
    return category


async def _reject_duplicate_name(
    repo: CategoryRepository,
    workspace_id: int,
    kind: CategoryKind,
    name: str,
    exclude_id: int | None = None,
):
    existing = await repo.get_by_name(workspace_id, kind, name)
    if existing and existing.id != exclude_id:
        raise HTTPException(
            status_code=422,
            detail=[{
                "type": "value_error",
                "loc": ["body", "name"],
                "msg": "A category with this name already exists in the workspace",
                "input": name
            }]
        )


@router.get("/workspace/{workspace_id}", response_model=list[CategoryOut])
async def list_categories(
    workspace_id: int,
    db: DBSessionDep,
    user: CurrentUserDep,
    kind: Optional[CategoryKind] = Query(None),
    include_archived: bool = Query(False),
):
    """List the categories of a workspace, all kinds unless one is given"""
    await require_workspace_member(db, workspace_id, user)
    return await CategoryRepository(db).list(workspace_id, kind=kind, include_archived=include_archived)


@router.post("/", response_model=CategoryOut)
async def create_category(data: CategoryCreate, db: DBSessionDep, user: CurrentUserDep):
    await require_workspace_member(db, data.workspace_id, user)
    repo = CategoryRepository(db)
    await _reject_duplicate_name(repo, data.workspace_id, data.kind, data.name)

    category = await repo.create(Category(**data.model_dump(), show_by_default=True, is_archived=False))

    await AuditService(db).log_action(
        user_id=user.user_id,
        action='create',
        entity='category',
        entity_id=str(category.id),
        workspace_id=category.workspace_id,
        details={'name': category.name, 'kind': category.kind.value}
    )
    return category


@router.patch("/{category_id}", response_model=CategoryOut)
async def update_category(category_id: int, data: CategoryUpdate, db: DBSessionDep, user: CurrentUserDep):
    category = await _load_scoped_category(db, category_id, user)
    repo = CategoryRepository(db)
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("name") is None:
        update_data.pop("name", None)
    if "name" in update_data:
        await _reject_duplicate_name(
            repo, category.workspace_id, category.kind, update_data["name"], exclude_id=category.id
        )
    for field, value in update_data.items():
        setattr(category, field, value)
    category = await repo.update(category)

    await AuditService(db).log_action(
        user_id=user.user_id,
        action='update',
        entity='category',
        entity_id=str(category.id),
        workspace_id=category.workspace_id,
        details={'fields': sorted(update_data)}
    )
    return category


@router.post("/{category_id}/archive", response_model=CategoryOut)
async def archive_category(category_id: int, db: DBSessionDep, user: CurrentUserDep):
    """Archive a category - tasks keep their reference to it"""
    category = await _load_scoped_category(db, category_id, user)
    category.is_archived = True
    category = await CategoryRepository(db).update(category)

    await AuditService(db).log_action(
        user_id=user.user_id,
        action='archive',
        entity='category',
        entity_id=str(category.id),
        workspace_id=category.workspace_id,
    )
    return category
