from typing import List

from fastapi import APIRouter, Depends, HTTPException

from expense_tracker.core.deps import get_db
from expense_tracker.db.dal import Database
from expense_tracker.models.category import CategoryIn, CategoryOut, CategoryUpdateIn

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=List[CategoryOut], summary="List categories")
async def list_categories(db: Database = Depends(get_db)):
    return [CategoryOut(**r) for r in db.list_categories()]


@router.post(
    "/", response_model=CategoryOut, status_code=201, summary="Create a category"
)
async def create_category(payload: CategoryIn, db: Database = Depends(get_db)):
    try:
        category_id = db.create_category(payload.name, payload.color, payload.icon)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    row = db.get_category(category_id)
    if not row:
        raise HTTPException(status_code=500, detail="category not found after insert")
    return CategoryOut(**row)


@router.get("/{category_id}", response_model=CategoryOut, summary="Get one category")
async def get_category(category_id: int, db: Database = Depends(get_db)):
    row = db.get_category(category_id)
    if not row:
        raise HTTPException(status_code=404, detail="category not found")
    return CategoryOut(**row)


@router.patch(
    "/{category_id}", response_model=CategoryOut, summary="Edit a category (partial)"
)
async def update_category(
    category_id: int, payload: CategoryUpdateIn, db: Database = Depends(get_db)
):
    changes = payload.model_dump(exclude_none=True)
    try:
        db.update_category(category_id, **changes)
    except LookupError:
        raise HTTPException(status_code=404, detail="category not found")
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    row = db.get_category(category_id)
    if not row:
        raise HTTPException(status_code=404, detail="category not found")
    return CategoryOut(**row)


@router.delete("/{category_id}", status_code=204, summary="Delete an unused category")
async def delete_category(category_id: int, db: Database = Depends(get_db)):
    in_use = db.count_expenses_in_category(category_id)
    if in_use:
        raise HTTPException(
            status_code=409,
            detail=f"category has {in_use} expenses; move or delete them first",
        )
    try:
        db.delete_category(category_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="category not found")
    return None
