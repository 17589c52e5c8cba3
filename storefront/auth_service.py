"""
Account registration, login and request identity resolution.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from storefront.account_repository import AccountRepository
from storefront.config import Config
from storefront.exceptions import ValidationError
from storefront.models import Account, AccountIdentity, LoginResult, Role

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(account: Account, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=Config.JWT_EXPIRES_MINUTES))
    payload = {"sub": account.id, "role": account.role.value, "exp": expire}
    return jwt.encode(payload, Config.JWT_SECRET, algorithm=Config.JWT_ALGORITHM)


class AuthService:
    """Service for registration and login"""

    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    def register(self, name: str, email: str, password: str, role: Role = Role.MEMBER) -> AccountIdentity:
        if self.accounts.find_by_email(email):
            raise ValidationError("Email already registered")
        account = Account(
            id=uuid.uuid4().hex,
            name=name,
            email=email.lower(),
            password_hash=hash_password(password),
            role=role,
        )
        self.accounts.create(account)
        logger.info("Registered account %s", account.id)
        return account.identity()

    def login(self, email: str, password: str) -> LoginResult:
        account = self.accounts.find_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            raise ValidationError("Invalid email or password")
        return LoginResult(token=create_access_token(account), user=account.identity())


class IdentityResolver:
    """Turns a request credential into an account identity, or None for anonymous"""

    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    def resolve(self, credential: Optional[str]) -> Optional[AccountIdentity]:
        if not credential:
            return None
        token = credential[7:] if credential.startswith("Bearer ") else credential
        token = token.strip()
        if not token:
            return None

        try:
            payload = jwt.decode(token, Config.JWT_SECRET, algorithms=[Config.JWT_ALGORITHM])
        except JWTError:
            # Invalid or expired credentials continue as guest
            return None

        account_id = payload.get("sub")
        if not account_id:
            return None
        account = self.accounts.find_by_id(account_id)
        return account.identity() if account else None
