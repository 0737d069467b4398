import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from supabase import AuthApiError, Client
from supabase_auth.types import User

from nutriplan.core.config import get_settings
from nutriplan.core.errors import NutriPlanError, ProfileNotFound
from nutriplan.core.security import get_current_user
from nutriplan.models.schemas import ProfileCreate, ProfileUpdate, Token, UserCreate
from nutriplan.services import profile_service
from nutriplan.services.supabase_client import get_supabase
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Authentication"]
)


@router.post("/signup", status_code=201, response_model=dict)
def sign_up(user_credentials: UserCreate, db: Client = Depends(get_supabase)):
    """
    Register a new user with Supabase Auth.
    Questionnaire answers, when sent, are kept in the user metadata.
    """
    frontend_url = get_settings().frontend_url

    metadata = {"name": user_credentials.name}
    if user_credentials.questionnaire_data:
        metadata["questionnaire"] = user_credentials.questionnaire_data

    try:
        response = db.auth.sign_up({
            "email": user_credentials.email,
            "password": user_credentials.password,
            "options": {
                "email_redirect_to": f"{frontend_url}/onboarding/account",
                "data": metadata,
            },
        })
    except AuthApiError as e:
        logger.warning("Signup failed for %s: %s", user_credentials.email, e)
        raise HTTPException(status_code=400, detail=str(e))

    if not response.user:
        raise HTTPException(status_code=400, detail="Could not create user for an unknown reason.")

    logger.info("User created: %s", user_credentials.email)
    return {"message": "User created successfully. Please check your email for verification."}


@router.post("/token", response_model=Token)
def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends(), db: Client = Depends(get_supabase)):
    """Login with form data (the OAuth2 `username` field carries the email)."""
    try:
        response = db.auth.sign_in_with_password({
            "email": form_data.username,
            "password": form_data.password,
        })
    except AuthApiError:
        raise HTTPException(
            status_code=401,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {
        "access_token": response.session.access_token,
        "token_type": "bearer",
    }


@router.post("/profile", response_class=JSONResponse)
def create_profile(
    profile_data: ProfileCreate,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Save the onboarding questionnaire and the targets computed from it.
    Submitting again overwrites the previous profile.
    """
    try:
        saved = profile_service.onboard(db, str(current_user.id), profile_data)
        return {
            "status": "success",
            "message": "Profile saved successfully",
            **saved,
        }
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Error saving profile")
        raise HTTPException(status_code=500, detail=f"Error saving profile: {str(e)}")


@router.get("/profile", response_class=JSONResponse)
def get_profile(current_user: User = Depends(get_current_user), db: Client = Depends(get_supabase)):
    profile = store.get_profile(db, str(current_user.id))
    if profile is None:
        raise ProfileNotFound()
    return {"status": "success", "profile": profile}


@router.put("/profile", response_class=JSONResponse)
def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    try:
        profile = profile_service.edit_profile(db, str(current_user.id), profile_data)
        return {"status": "success", "profile": profile}
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Error updating profile")
        raise HTTPException(status_code=500, detail=f"Error updating profile: {str(e)}")
