"""
Account Service - Component Tests

Registration, login, profiles, admin keycode gating and founder
verification.
"""

import pytest

from core.errors import AuthenticationError, AuthorizationError
from microservices.account_service.models import UserRole
from microservices.account_service.password_utils import hash_password
from microservices.account_service.protocols import (
    AccountNotFoundError,
    AccountValidationError,
    DuplicateAccountError,
)
from microservices.notification_service.models import NotificationType
from tests.contracts.account.data_contract import AccountTestDataFactory

pytestmark = [pytest.mark.component, pytest.mark.asyncio]


class TestRegistration:

    async def test_register_investor(self, account_service, jwt_manager):
        request = AccountTestDataFactory.make_register_request(UserRole.INVESTOR, email="New.User@Example.com")

        result = await account_service.register(request)

        assert result.user.email == "new.user@example.com"
        assert result.user.role == UserRole.INVESTOR
        assert result.user.is_verified is False
        claims = jwt_manager.verify_token(result.token)
        assert claims["valid"] is True
        assert claims["user_id"] == result.user.id

    async def test_register_founder_unverified(self, account_service):
        result = await account_service.register(AccountTestDataFactory.make_register_request(UserRole.FOUNDER))

        assert result.user.role == UserRole.FOUNDER
        assert result.user.is_verified is False

    async def test_duplicate_email_case_insensitive(self, account_service):
        await account_service.register(AccountTestDataFactory.make_register_request(email="dup@example.com"))

        with pytest.raises(DuplicateAccountError) as exc_info:
            await account_service.register(AccountTestDataFactory.make_register_request(email="DUP@example.com"))

        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("password", ["abcdefgh", "12345678"])
    async def test_weak_password(self, account_service, password):
        with pytest.raises(AccountValidationError):
            await account_service.register(AccountTestDataFactory.make_register_request(password=password))

    async def test_password_stored_hashed(self, account_service, account_repository):
        result = await account_service.register(AccountTestDataFactory.make_register_request())

        stored = await account_repository.get_user_by_id(result.user.id)
        assert stored.password_hash.startswith("$2")
        assert AccountTestDataFactory.DEFAULT_PASSWORD not in stored.password_hash


class TestAdminRegistration:

    async def test_valid_keycode(self, account_service):
        result = await account_service.register_admin(AccountTestDataFactory.make_admin_request(account_service.admin_keycode))

        assert result.user.role == UserRole.ADMIN
        assert result.user.is_verified is True

    async def test_invalid_keycode(self, account_service):
        with pytest.raises(AuthorizationError):
            await account_service.register_admin(AccountTestDataFactory.make_admin_request("wrong"))

    async def test_unset_keycode_disables_admin_registration(self, account_service):
        account_service.admin_keycode = ""

        with pytest.raises(AuthorizationError):
            await account_service.register_admin(AccountTestDataFactory.make_admin_request("anything"))


class TestLogin:

    async def test_login(self, account_service):
        registered = await account_service.register(
            AccountTestDataFactory.make_register_request(email="login@example.com")
        )

        result = await account_service.login(AccountTestDataFactory.make_login_request("LOGIN@example.com"))

        assert result.user.id == registered.user.id
        assert result.token

    async def test_wrong_password(self, account_service):
        await account_service.register(AccountTestDataFactory.make_register_request(email="login@example.com"))

        with pytest.raises(AuthenticationError):
            await account_service.login(AccountTestDataFactory.make_login_request("login@example.com", "Wrong1234"))

    async def test_unknown_email(self, account_service):
        with pytest.raises(AuthenticationError):
            await account_service.login(AccountTestDataFactory.make_login_request("nobody@example.com"))

    async def test_inactive_user(self, account_service, account_repository):
        account_repository.set_user(
            "usr_inactive000001", "gone@example.com", is_active=False,
            password_hash=hash_password(AccountTestDataFactory.DEFAULT_PASSWORD, rounds=4),
        )

        with pytest.raises(AuthenticationError):
            await account_service.login(AccountTestDataFactory.make_login_request("gone@example.com"))


class TestProfile:

    async def test_get_profile(self, account_service, investor):
        profile = await account_service.get_profile(investor.id)

        assert profile.email == investor.email
        assert "password_hash" not in profile.model_dump()

    async def test_update_profile_partial(self, account_service, investor):
        profile = await account_service.update_profile(
            investor.id, AccountTestDataFactory.make_profile_update(bio="Angel investor", location="Accra")
        )

        assert profile.bio == "Angel investor"
        assert profile.location == "Accra"
        assert profile.full_name == investor.full_name

    async def test_unknown_profile(self, account_service):
        with pytest.raises(AccountNotFoundError):
            await account_service.get_profile("usr_missing")


class TestFounderVerification:

    async def test_list_founders_by_verification(self, account_service, account_repository):
        account_repository.set_user("usr_f1", "f1@example.com", UserRole.FOUNDER, is_verified=False)
        account_repository.set_user("usr_f2", "f2@example.com", UserRole.FOUNDER, is_verified=True)

        unverified = await account_service.list_founders(is_verified=False)
        everyone = await account_service.list_founders()

        assert [f.id for f in unverified] == ["usr_f1"]
        assert len(everyone) == 2

    async def test_approve_founder_notifies(self, account_service, account_repository, notification_repository):
        account_repository.set_user("usr_f1", "f1@example.com", UserRole.FOUNDER)

        profile = await account_service.approve_founder("usr_f1")

        assert profile.is_verified is True
        notifications = notification_repository.for_user("usr_f1")
        assert [n.type for n in notifications] == [NotificationType.FOUNDER_APPROVAL]
        assert notifications[0].title == "Founder Account Approved"

    async def test_reject_founder(self, account_service, account_repository, notification_repository):
        account_repository.set_user("usr_f1", "f1@example.com", UserRole.FOUNDER)

        profile = await account_service.reject_founder("usr_f1")

        assert profile.role == UserRole.REJECTED_FOUNDER
        assert notification_repository.for_user("usr_f1")[0].title == "Founder Account Rejected"

    async def test_approve_non_founder(self, account_service, investor, notification_repository):
        with pytest.raises(AccountNotFoundError):
            await account_service.approve_founder(investor.id)

        assert notification_repository.for_user(investor.id) == []
