"""
Persistent credential store: bearer token plus cached user and company records.
"""

from typing import Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from infrastructure.storage.browser_storage import KeyValueStorage
from services.auth_service.models import Company, User
from utils.logging_config import get_logger

TOKEN_KEY = "workzen_token"
USER_KEY = "workzen_user"
COMPANY_KEY = "workzen_company"

ModelT = TypeVar("ModelT", bound=BaseModel)


class CredentialStore:
    """
    Reads and writes the session credential through a KeyValueStorage.

    Outside a browser context (no script run, server-side execution) every
    read returns None and every write is skipped.
    """

    def __init__(self, storage: Optional[KeyValueStorage]):
        self.storage = storage
        self.logger = get_logger(__name__)

    def _available(self) -> bool:
        return self.storage is not None and self.storage.is_available()

    def save_token(self, token: str):
        if self._available():
            self.storage.set_item(TOKEN_KEY, token)

    def read_token(self) -> Optional[str]:
        if not self._available():
            return None
        return self.storage.get_item(TOKEN_KEY) or None

    def save_user(self, user: User):
        self._save_model(USER_KEY, user)

    def read_user(self) -> Optional[User]:
        return self._read_model(USER_KEY, User)

    def save_company(self, company: Company):
        self._save_model(COMPANY_KEY, company)

    def read_company(self) -> Optional[Company]:
        return self._read_model(COMPANY_KEY, Company)

    def clear_company(self):
        if self._available():
            self.storage.remove_item(COMPANY_KEY)

    def clear_all(self):
        """Remove token, user and company"""
        if not self._available():
            return
        for key in (TOKEN_KEY, USER_KEY, COMPANY_KEY):
            self.storage.remove_item(key)

    def _save_model(self, key: str, model: BaseModel):
        if self._available():
            self.storage.set_item(key, model.model_dump_json())

    def _read_model(self, key: str, model_cls: Type[ModelT]) -> Optional[ModelT]:
        if not self._available():
            return None

        raw = self.storage.get_item(key)
        if not raw:
            return None

        # pydantic bounds nesting depth while parsing
        try:
            return model_cls.model_validate_json(raw)
        except (ValueError, TypeError, ModelValidationError) as e:
            self.logger.warning(f"Ignoring malformed '{key}' record: {type(e).__name__}")
            return None
