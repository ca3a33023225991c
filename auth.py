import base64
import hashlib
import hmac
import json
import logging
import secrets
import time
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request
from pymongo.errors import DuplicateKeyError

from config import Config
from errors import AuthenticationError, AuthorizationError, ConflictError
from models import Identity, UserRegister

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000


# دوال مساعدة
def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Salted PBKDF2 hash stored as `salt$hex`."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash or "$" not in password_hash:
        return False
    salt, _digest = password_hash.split("$", 1)
    return hmac.compare_digest(hash_password(password, salt), password_hash)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _b64decode(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def sign_token(payload: dict, secret: str, ttl: timedelta) -> str:
    """Return `<payload>.<signature>` where payload carries an `exp` timestamp."""
    body = dict(payload)
    body["exp"] = int(time.time() + ttl.total_seconds())
    message = _b64encode(json.dumps(body, sort_keys=True, separators=(",", ":")).encode())
    signature = hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()
    return f"{message}.{signature}"


def verify_token(token: str, secret: str) -> dict:
    try:
        message, signature = token.rsplit(".", 1)
    except ValueError:
        raise AuthenticationError("Malformed token.")

    expected = hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(signature, expected):
        raise AuthenticationError("Invalid token signature.")

    try:
        payload = json.loads(_b64decode(message))
    except (ValueError, UnicodeDecodeError):
        raise AuthenticationError("Malformed token.")

    if int(payload.get("exp", 0)) < time.time():
        raise AuthenticationError("Token has expired.")
    return payload


class AuthService:
    """Customer/admin accounts and token issuance."""

    def __init__(self, db, secret: str = Config.SECRET_KEY, ttl_hours: int = Config.TOKEN_TTL_HOURS):
        self.db = db
        self.secret = secret
        self.ttl = timedelta(hours=ttl_hours)

    def issue_token(self, identity: Identity) -> str:
        return sign_token(identity.model_dump(), self.secret, self.ttl)

    def identify(self, token: str) -> Identity:
        payload = verify_token(token, self.secret)
        try:
            return Identity(id=payload["id"], role=payload["role"], name=payload["name"])
        except KeyError:
            raise AuthenticationError("Malformed token.")

    async def register_customer(self, data: UserRegister) -> dict:
        existing = await self.db.users.find_one({"email": data.email})
        if existing:
            raise ConflictError("User already exists with this email.")

        user = {
            "name": data.name,
            "email": data.email,
            "password": hash_password(data.password),
            "role": "customer",
            "createdAt": datetime.utcnow(),
        }
        try:
            result = await self.db.users.insert_one(user)
        except DuplicateKeyError:
            raise ConflictError("User already exists with this email.")

        logger.info(f"Registered customer {data.email}")
        return {"_id": str(result.inserted_id), "name": data.name, "email": data.email}

    async def login_customer(self, email: str, password: str) -> dict:
        user = await self.db.users.find_one({"email": email})
        if not user or not verify_password(password, user.get("password", "")):
            raise AuthenticationError("Invalid credentials.")

        identity = Identity(id=str(user["_id"]), role="customer", name=user["name"])
        return {
            "message": "Login successful!",
            "token": self.issue_token(identity),
            "user": {"_id": identity.id, "name": user["name"], "email": user["email"]},
        }

    async def login_admin(self, email: str, password: str) -> dict:
        admin = await self.db.admins.find_one({"email": email})
        if not admin or not verify_password(password, admin.get("password", "")):
            raise AuthenticationError("Invalid credentials.")

        identity = Identity(id=str(admin["_id"]), role="admin", name=admin["username"])
        return {
            "message": "Admin login successful!",
            "token": self.issue_token(identity),
            "admin": {"_id": identity.id, "username": admin["username"], "email": admin["email"]},
        }

    async def create_admin(self, username: str, email: str, password: str) -> bool:
        """Create the initial admin; returns False when it already exists."""
        if await self.db.admins.find_one({"email": email}):
            logger.info("Admin user already exists. Skipping creation.")
            return False

        await self.db.admins.insert_one({
            "username": username,
            "email": email,
            "password": hash_password(password),
            "role": "admin",
        })
        logger.info(f"Initial admin created: {email}")
        return True

    async def list_users(self) -> list:
        users = []
        async for user in self.db.users.find({}, {"password": 0}):
            user["_id"] = str(user["_id"])
            users.append(user)
        return users


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def current_identity(request: Request, auth: AuthService = Depends(get_auth_service)) -> Identity:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authentication required.")
    return auth.identify(token.strip())


def require_admin(identity: Identity = Depends(current_identity)) -> Identity:
    if identity.role != "admin":
        raise AuthorizationError("Admin access required.")
    return identity
