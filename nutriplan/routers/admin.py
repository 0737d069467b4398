import logging

from fastapi import APIRouter, Depends
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import AccessDenied, InvalidRequest, NotFound, RoleAlreadySelected
from nutriplan.core.security import get_current_user, require_role
from nutriplan.models.roles import Role, highest_role
from nutriplan.models.schemas import AssignmentCreate, OrganizationCreate, RoleGrant, RoleSelection
from nutriplan.services.supabase_client import get_supabase
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Roles & Organizations"])

require_admin = require_role(Role.ADMIN)


@router.post("/roles/select", status_code=201)
def select_role(
    selection: RoleSelection,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Pick a role once, after signup. Nutritionists work inside an
    organization, so they must name one; it is created for them.
    Admin is never self-selected, only granted by another admin.
    """
    user_id = str(current_user.id)

    if selection.role == Role.ADMIN:
        raise AccessDenied("The admin role can only be granted by an administrator")
    if store.list_roles(db, user_id):
        raise RoleAlreadySelected()

    if selection.role == Role.USER:
        role_row = store.insert_role(db, {"user_id": user_id, "role": Role.USER.value, "organization_id": None})
        return {"role": role_row["role"], "organization": None}

    name = (selection.organization_name or "").strip()
    if not name:
        raise InvalidRequest("organization_name is required for this role")

    organization = store.insert_organization(db, {"name": name, "created_by": user_id})
    store.insert_membership(db, {"organization_id": organization["id"], "user_id": user_id})
    role_row = store.insert_role(db, {
        "user_id": user_id,
        "role": selection.role.value,
        "organization_id": organization["id"],
    })
    logger.info("User %s became %s of organization %s", user_id, selection.role.value, organization["id"])
    return {"role": role_row["role"], "organization": organization}


@router.get("/roles/me")
def my_role(current_user: User = Depends(get_current_user), db: Client = Depends(get_supabase)):
    rows = store.list_roles(db, str(current_user.id))
    org_ids = sorted({row["organization_id"] for row in rows if row.get("organization_id")})
    return {
        "role": highest_role(row.get("role") for row in rows).value,
        "organizations": store.list_organizations(db, org_ids),
    }


@router.get("/admin/organizations")
def list_organizations(current_user: User = Depends(require_admin), db: Client = Depends(get_supabase)):
    return {"organizations": store.list_organizations(db)}


@router.post("/admin/organizations", status_code=201)
def create_organization(
    organization: OrganizationCreate,
    current_user: User = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    name = organization.name.strip()
    if not name:
        raise InvalidRequest("name is required")
    return store.insert_organization(db, {"name": name, "created_by": str(current_user.id)})


@router.get("/admin/organizations/{organization_id}/members")
def organization_members(
    organization_id: str,
    current_user: User = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    return {"members": store.list_organization_roles(db, organization_id)}


@router.post("/admin/assignments", status_code=201)
def assign_client(
    assignment: AssignmentCreate,
    current_user: User = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    nutritionist_roles = store.list_roles(db, assignment.nutritionist_id)
    if not highest_role(row.get("role") for row in nutritionist_roles).at_least(Role.NUTRITIONIST):
        raise InvalidRequest("The selected user is not a nutritionist")
    if store.get_profile(db, assignment.client_id) is None:
        raise NotFound("Client profile not found")

    return store.insert_assignment(db, assignment.model_dump())


@router.post("/admin/roles", status_code=201)
def grant_role(
    grant: RoleGrant,
    current_user: User = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    if store.get_profile(db, grant.user_id) is None:
        raise NotFound("User profile not found")
    if grant.organization_id is not None and not store.list_organizations(db, [grant.organization_id]):
        raise NotFound("Organization not found")

    role_row = store.insert_role(db, grant.model_dump(mode="json"))
    logger.info("Admin %s granted %s to %s", current_user.id, grant.role.value, grant.user_id)
    return role_row
