"""
Account storage on Redis.

Accounts live under ``account:{id}``; ``account:email:{email}`` maps a
lower-cased email to its account id and enforces uniqueness.
"""
from typing import Optional

from storefront.exceptions import ValidationError
from storefront.models import Account
from storefront.redis_client import RedisClient


class AccountRepository:

    def __init__(self, redis: RedisClient):
        self.redis = redis

    def _get_account_key(self, account_id: str) -> str:
        return f"account:{account_id}"

    def _get_email_key(self, email: str) -> str:
        return f"account:email:{email.lower()}"

    def create(self, account: Account) -> Account:
        email_key = self._get_email_key(account.email)

        def _create(pipe):
            if pipe.exists(email_key):
                raise ValidationError("Email already registered")
            pipe.multi()
            pipe.set(self._get_account_key(account.id), account.model_dump_json())
            pipe.set(email_key, account.id)
            return account

        return self.redis.transaction(_create, email_key)

    def find_by_id(self, account_id: str) -> Optional[Account]:
        raw = self.redis.get(self._get_account_key(account_id))
        return Account.model_validate_json(raw) if raw else None

    def find_by_email(self, email: str) -> Optional[Account]:
        account_id = self.redis.get(self._get_email_key(email))
        return self.find_by_id(account_id) if account_id else None
