"""
Potluck Backend: User Service
==============================

What:  Signup, login and profile lookup.

Signup Flow (POST /signup):
    1. Required fields present, email has an "@", password fits bcrypt
    2. Profile image present and an image
    3. Email not registered yet
    4. In one transaction: upload + media row, then the user row
    5. If the user insert fails after the upload, the object is deleted

Login (POST /login): look up by email, bcrypt compare, issue a 24h token.
Unknown email and wrong password are indistinguishable to the client.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from potluck.database import unit_of_work
from potluck.exceptions import AuthenticationError, NotFoundError, ValidationError
from potluck.models.media import MediaType
from potluck.models.user import User
from potluck.services.media_service import (
    PROFILE_KEY_TEMPLATE,
    MediaAttachmentService,
    MediaUpload,
)
from potluck.services.passwords import MAX_PASSWORD_BYTES, hash_password, verify_password
from potluck.services.tokens import TokenCodec

logger = logging.getLogger(__name__)

PROFILE_MEDIA_TYPES = (MediaType.IMAGE,)


@dataclass(frozen=True)
class SignupForm:
    username: str
    email: str
    date_of_birth: str
    password: str


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _duplicate_email() -> ValidationError:
    return ValidationError(message="Email is already registered", field="email")


class UserService:
    def __init__(
        self,
        session: AsyncSession,
        media: MediaAttachmentService,
        tokens: TokenCodec,
        bcrypt_rounds: int = 12,
    ):
        self._session = session
        self._media = media
        self._tokens = tokens
        self._bcrypt_rounds = bcrypt_rounds

    @staticmethod
    def _validate_signup(form: SignupForm) -> None:
        required = {
            "username": form.username,
            "email": form.email,
            "date_of_birth": form.date_of_birth,
            "password": form.password,
        }
        missing = [name for name, value in required.items() if not (value or "").strip()]
        if missing:
            raise ValidationError(
                message=f"Missing required fields: {', '.join(missing)}",
                field=missing[0],
                context={"missing": missing},
            )

        local, sep, domain = form.email.strip().partition("@")
        if not sep or not local or not domain:
            raise ValidationError(message="Email address is not valid", field="email")

        if len(form.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                field="password",
            )

    async def _email_taken(self, email: str) -> bool:
        return await self._session.scalar(select(User.id).where(User.email == email)) is not None

    async def register(self, form: SignupForm, upload: Optional[MediaUpload]) -> User:
        """
        Create a user with a profile picture.

        Raises:
            ValidationError: missing/invalid fields, duplicate email, bad upload
            UploadError: object store failure (nothing persisted)
            DatabaseError: the transaction failed (rolled back)
        """
        self._validate_signup(form)
        if upload is None:
            raise ValidationError(message="Profile image is required", field="media")
        self._media.validate(upload, PROFILE_MEDIA_TYPES)

        email = normalize_email(form.email)
        if await self._email_taken(email):
            raise _duplicate_email()

        user_id = uuid.uuid4()
        password_hash = hash_password(form.password, self._bcrypt_rounds)

        async with unit_of_work(self._session, "register_user"):
            media = await self._media.attach(
                owner_id=user_id,
                upload=upload,
                key_template=PROFILE_KEY_TEMPLATE,
                allowed_types=PROFILE_MEDIA_TYPES,
            )
            user = User(
                id=user_id,
                name=form.username.strip(),
                username=form.username.strip(),
                email=email,
                date_of_birth=form.date_of_birth.strip(),
                password_hash=password_hash,
                media_id=media.id,
                media_url=media.url,
            )
            self._session.add(user)
            try:
                await self._session.flush()
            except IntegrityError as e:
                # email is the only unique column: a concurrent signup won
                await self._media.discard(media)
                raise _duplicate_email() from e
            except SQLAlchemyError:
                await self._media.discard(media)
                raise

        logger.info("User registered: %s", user.id)
        return user

    async def login(self, email: Optional[str], password: Optional[str]) -> str:
        """
        Verify credentials and return a signed token.

        Raises:
            ValidationError: email or password missing
            AuthenticationError: unknown email or wrong password
            ConfigurationError: no signing secret configured
        """
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError(message="Email and password are required")

        user = await self._session.scalar(select(User).where(User.email == email))
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise AuthenticationError(message="Invalid email or password")

        return self._tokens.issue(user.id, user.email)

    async def get_user(self, user_id: UUID) -> User:
        user = await self._session.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user
