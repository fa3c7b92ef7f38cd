"""
User identity for cargo-tracker.

Only anonymous sign-in is provided: each provider instance hands out one
stable random user id.
"""

import uuid
from abc import ABC, abstractmethod


class AuthenticationError(Exception):
    """Raised when a user identity cannot be established."""


class IdentityProvider(ABC):
    """Source of the current user's id."""

    @abstractmethod
    def sign_in(self) -> str:
        """
        Establish an identity.

        Returns:
            The user id

        Raises:
            AuthenticationError: If sign-in fails
        """


class AnonymousIdentityProvider(IdentityProvider):
    """Signs in anonymously; repeated calls return the same id."""

    def __init__(self, user_id: str | None = None):
        self._user_id = user_id

    @property
    def current_user_id(self) -> str | None:
        return self._user_id

    def sign_in(self) -> str:
        if self._user_id is None:
            self._user_id = uuid.uuid4().hex
        return self._user_id
