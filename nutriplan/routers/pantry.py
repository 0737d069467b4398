from fastapi import APIRouter, Depends
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import AccessDenied, InvalidRequest, NotFound
from nutriplan.core.security import get_current_user
from nutriplan.models.schemas import PantryItemCreate, PantryItemUpdate
from nutriplan.services.supabase_client import get_supabase
from nutriplan.tools import database_tools as store

router = APIRouter(
    prefix="/pantry",
    tags=["Pantry"]
)


def _owned_item(db: Client, user_id: str, item_id: str) -> dict:
    item = store.get_pantry_item(db, item_id)
    if item is None:
        raise NotFound("Pantry item not found")
    if item["user_id"] != user_id:
        raise AccessDenied("Access denied")
    return item


@router.get("")
def list_items(current_user: User = Depends(get_current_user), db: Client = Depends(get_supabase)):
    return {"items": store.list_pantry(db, str(current_user.id))}


@router.post("", status_code=201)
def add_item(
    item: PantryItemCreate,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    food_name = item.food_name.strip()
    if not food_name:
        raise InvalidRequest("food_name is required")
    return store.insert_pantry_item(db, {
        "user_id": str(current_user.id),
        **item.model_dump(),
        "food_name": food_name,
    })


@router.patch("/{item_id}")
def update_item(
    item_id: str,
    changes: PantryItemUpdate,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    _owned_item(db, str(current_user.id), item_id)
    fields = changes.model_dump(exclude_unset=True)
    if not fields:
        raise InvalidRequest("Nothing to update")
    return store.update_pantry_item(db, item_id, fields)


@router.delete("/{item_id}", status_code=204)
def delete_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    _owned_item(db, str(current_user.id), item_id)
    store.delete_pantry_item(db, item_id)
