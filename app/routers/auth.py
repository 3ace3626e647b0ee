import logging

from fastapi import APIRouter, HTTPException, status, Depends

from app.core.config import settings
from app.core.deps import get_current_user_id, get_repository
from app.core.security import get_password_hash, verify_password, create_access_token
from app.db.dynamo import DynamoRepository
from app.models.user import UserCreate, UserLogin, UserInDB, UserPublic

router = APIRouter()
logger = logging.getLogger(__name__)


def _public(user: dict) -> UserPublic:
    return UserPublic(
        user_id=user["user_id"],
        email=user["email"],
        name=user.get("name"),
        currency=user.get("currency", settings.DEFAULT_CURRENCY),
        created_at=user.get("created_at", ""),
    )


@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, repo: DynamoRepository = Depends(get_repository)):
    existing = repo.get_user_by_email(user.email)
    if existing:
        raise HTTPException(status_code=400, detail="User already exists")

    user_db = UserInDB(
        email=user.email,
        name=user.name,
        password_hash=get_password_hash(user.password),
    )

    if not repo.put_user(user_db.model_dump()):
        raise HTTPException(status_code=500, detail="Error saving user")

    if settings.SEED_DEMO_DATA and not repo.seed_demo_data(user_db.user_id):
        # The account exists; a missing starter set is not fatal
        logger.warning(f"Demo data could not be written for user {user_db.user_id}")

    logger.info(f"Registered user {user_db.user_id}")
    return _public(user_db.model_dump())


@router.get("/me", response_model=UserPublic)
def get_current_user(
    user_id: str = Depends(get_current_user_id),
    repo: DynamoRepository = Depends(get_repository),
):
    """Get current user profile"""
    user = repo.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _public(user)


@router.post("/login")
def login(login_data: UserLogin, repo: DynamoRepository = Depends(get_repository)):
    try:
        logger.info(f"Login attempt for email: {login_data.email}")
        user = repo.get_user_by_email(login_data.email)

        if not user:
            logger.warning(f"User not found: {login_data.email}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        if not verify_password(login_data.password, user["password_hash"]):
            logger.warning(f"Invalid password for user: {login_data.email}")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        access_token = create_access_token(data={"sub": user["user_id"]})
        logger.info(f"Login successful for user: {login_data.email}")

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": _public(user).model_dump(),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Login failed: {str(e)}")
