"""
Trailpost Backend — Account Service
=====================================

What:  Registration and login.
Who:   Called by the auth routes.

Registration:
    username and email must be unused (case-insensitive) and are stored
    trimmed; email is stored lowercased. The response carries a token so
    the client is signed in immediately.

Login:
    `identifier` may be the username or the email. Unknown accounts and
    wrong passwords produce the same UnauthorizedError message, so the
    endpoint does not reveal which usernames exist.
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.exceptions import AlreadyExistsError, StoreError, UnauthorizedError, ValidationError
from trailpost.models.user import User
from trailpost.schemas.user import AuthorSummary, TokenResponse
from trailpost.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:

    async def register(
        self,
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> TokenResponse:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: a required field is blank
            AlreadyExistsError: username or email already registered
            StoreError: the account could not be written
        """
        username = (username or "").strip()
        email = (email or "").strip().lower()
        for field, value in (("username", username), ("email", email), ("password", password)):
            if not value:
                raise ValidationError(message=f"{field} is required", field=field)

        try:
            result = await db.execute(
                select(User.username, User.email).where(
                    or_(
                        func.lower(User.username) == username.lower(),
                        func.lower(User.email) == email,
                    )
                )
            )
            clash = result.first()
        except SQLAlchemyError as e:
            logger.error("Database error checking registration: %s", str(e))
            raise StoreError()

        if clash is not None:
            field = "username" if clash.username.lower() == username.lower() else "email"
            raise AlreadyExistsError(
                message=f"An account with this {field} already exists",
                context={"field": field},
            )

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            display_name=(display_name or "").strip() or None,
        )
        try:
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            raise AlreadyExistsError(message="An account with this username or email already exists")
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", username, str(e))
            raise StoreError(message="Could not create the account. Please try again.")

        logger.info("Registered user %s (id=%s)", user.username, user.id)
        return TokenResponse(
            token=create_access_token(user.id),
            user=AuthorSummary(id=user.id, username=user.username),
        )

    async def login(self, db: AsyncSession, identifier: str, password: str) -> TokenResponse:
        """
        Exchange credentials for a token.

        Raises:
            UnauthorizedError: unknown account or wrong password
            StoreError: the lookup failed
        """
        ident = (identifier or "").strip().lower()
        try:
            result = await db.execute(
                select(User).where(
                    or_(func.lower(User.username) == ident, User.email == ident)
                )
            )
            user = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise StoreError()

        if user is None or not verify_password(password or "", user.password_hash):
            logger.info("Failed login for identifier %r", ident)
            raise UnauthorizedError(message="Invalid credentials")

        logger.info("User %s logged in", user.id)
        return TokenResponse(
            token=create_access_token(user.id),
            user=AuthorSummary(id=user.id, username=user.username),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
