"""
Categories API Routes

Read-only access to the category taxonomy.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...repository import TransactionRepository
from ..dependencies import get_repository

router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryResponse(BaseModel):
    """Category model."""

    id: str
    display_name: str
    color_token: str
    icon_token: str
    is_system: bool


@router.get("", response_model=list[CategoryResponse])
def list_categories(
    repository: TransactionRepository = Depends(get_repository),
) -> list[CategoryResponse]:
    """List all categories."""
    return [CategoryResponse(**c.to_dict()) for c in repository.list_categories()]
