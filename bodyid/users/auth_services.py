import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config.appconfig import settings
from bodyid.helpers.errors import DuplicateKey, InvalidCredentials, ValidationError
from bodyid.users.body_id import generate_body_id
from bodyid.users.security import create_access_token, get_password_hash, verify_password
from bodyid.users.user_models.schemas import UserLogin, UserRegister
from bodyid.users.user_models.user_model import User

logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "role": user.role})


async def _find_one(db: AsyncSession, *criteria) -> Optional[User]:
    result = await db.execute(select(User).where(*criteria))
    return result.scalars().first()


# ============================================================
# ✅ ALLOCATE A UNIQUE BODY ID
# ============================================================
async def allocate_body_id(db: AsyncSession) -> str:
    """Generate a body id not yet in use, giving up after BODY_ID_MAX_ATTEMPTS."""
    for attempt in range(1, settings.BODY_ID_MAX_ATTEMPTS + 1):
        candidate = generate_body_id()
        if not await _find_one(db, User.body_id == candidate):
            return candidate
        logger.warning(f"⚠️ Body id collision on attempt {attempt}: {candidate}")
    raise DuplicateKey("Could not allocate a unique body id, please retry")


# ============================================================
# ✅ REGISTER A NEW USER
# ============================================================
async def registering_user(user_data: UserRegister, db: AsyncSession) -> Tuple[str, User]:
    if user_data.role == "patient" and not user_data.national_id:
        raise ValidationError("Patients must provide a national id")
    if user_data.role == "doctor" and not user_data.license_id:
        raise ValidationError("Doctors must provide a license id")

    if user_data.national_id and await _find_one(db, User.national_id == user_data.national_id):
        raise DuplicateKey("National id already exists")
    if user_data.license_id and await _find_one(db, User.license_id == user_data.license_id):
        raise DuplicateKey("License id already exists")
    if await _find_one(db, User.email == user_data.email):
        raise DuplicateKey("Email already exists")

    new_user = User(
        role=user_data.role,
        name=user_data.name,
        email=user_data.email,
        phone=user_data.phone,
        hashed_password=get_password_hash(user_data.password),
        national_id=user_data.national_id,
        license_id=user_data.license_id,
    )

    if user_data.role == "patient":
        new_user.body_id = await allocate_body_id(db)
    else:
        new_user.specialty = user_data.specialty
        new_user.consultation_fee = user_data.consultation_fee or settings.DEFAULT_CONSULTATION_FEE

    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same keys
        await db.rollback()
        raise DuplicateKey("An account with these identifiers already exists")
    await db.refresh(new_user)

    logger.info(f"✅ Registered {new_user.role} account id={new_user.id}")
    return issue_token(new_user), new_user


# ============================================================
# ✅ AUTHENTICATE USER
# ============================================================
async def authenticate_user(identifier: str, password: str, db: AsyncSession) -> Optional[User]:
    user = await _find_one(db, User.national_id == identifier)
    if not user:
        user = await _find_one(db, User.license_id == identifier)

    if not user:
        return None

    if not verify_password(password, user.hashed_password):
        return None

    return user


# ============================================================
# ✅ LOGIN USER
# ============================================================
async def login_user(user_data: UserLogin, db: AsyncSession) -> Tuple[str, User]:
    user = await authenticate_user(user_data.identifier, user_data.password, db)
    if not user:
        logger.info("Login attempt failed")
        raise InvalidCredentials()

    logger.info(f"✅ Login successful for account id={user.id} role={user.role}")
    return issue_token(user), user
