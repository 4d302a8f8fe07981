# Overview: Pytest coverage for signup, sessions, the setup wizard and email settings.

from datetime import timedelta

import pytest

from swiftflow.extensions import db
from swiftflow.models import PublicOwner, SessionToken
from swiftflow.models.owners import SETUP_BANK_INFO, SETUP_BUSINESS_INFO, SETUP_DONE
from swiftflow.services import auth_service, owner_service, session_service
from swiftflow.services.auth_service import PasswordValidationError
from swiftflow.validation import ConflictError, ValidationError
from conftest import PASSWORD


class TestSignup:
    def test_register_creates_shell_and_public_profile(self, db_session):
        owner = auth_service.register_owner("Naledi@Example.com", PASSWORD)

        assert owner.email == "naledi@example.com"
        assert owner.setup_step == SETUP_BUSINESS_INFO
        assert owner.email_settings() == {
            "enabled": False,
            "recipient": "naledi@example.com",
            "frequency": "weekly",
        }
        public = db.session.get(PublicOwner, owner.id)
        assert public is not None
        assert public.has_bank is False

    def test_duplicate_email(self, db_session, owner_a):
        with pytest.raises(ConflictError):
            auth_service.register_owner("thandi@example.com", PASSWORD)

    def test_weak_password(self, db_session):
        with pytest.raises(PasswordValidationError):
            auth_service.register_owner("weak@example.com", "short")

    def test_authenticate(self, db_session, owner_a):
        assert auth_service.authenticate("THANDI@example.com", PASSWORD).id == owner_a.id
        assert auth_service.authenticate("thandi@example.com", "wrong-password1") is None


class TestSessions:
    def test_session_round_trip_and_logout(self, db_session, owner_a):
        _, token = session_service.create_session(owner_a.id)

        assert session_service.validate_session(token).id == owner_a.id
        assert session_service.revoke_session(token) is True
        assert session_service.validate_session(token) is None

    def test_idle_session_expires(self, db_session, owner_a):
        session, token = session_service.create_session(owner_a.id)
        session.last_used_at = session.last_used_at - timedelta(hours=3)
        db.session.commit()

        assert session_service.validate_session(token) is None
        assert db.session.get(SessionToken, session.id).revoked_reason == "Idle timeout"

    def test_only_hash_is_stored(self, db_session, owner_a):
        session, token = session_service.create_session(owner_a.id)
        assert session.token_hash != token
        assert session.token_hash == session_service.hash_token(token)


class TestSetupWizard:
    def test_business_then_bank(self, db_session):
        owner = auth_service.register_owner("naledi@example.com", PASSWORD)

        owner_service.save_business_info(owner, {"businessName": "Naledi Knits", "businessType": "Clothing"})
        assert owner.setup_step == SETUP_BANK_INFO
        assert db.session.get(PublicOwner, owner.id).display_name == "Naledi Knits"

        owner_service.save_bank_details(owner, {
            "bankName": "Nedbank",
            "accountHolder": "N Dlamini",
            "accountNumber": "1100223344",
        })
        assert owner.setup_step == SETUP_DONE
        assert owner.is_registered is True

    def test_business_name_required(self, db_session):
        owner = auth_service.register_owner("naledi@example.com", PASSWORD)
        with pytest.raises(ValidationError):
            owner_service.save_business_info(owner, {"businessType": "Clothing"})

    def test_bank_requires_business_info_first(self, db_session):
        owner = auth_service.register_owner("naledi@example.com", PASSWORD)
        with pytest.raises(ValidationError):
            owner_service.save_bank_details(owner, {"bankName": "Nedbank"})

    def test_bank_lists_missing_fields(self, db_session, owner_a):
        with pytest.raises(ValidationError) as exc_info:
            owner_service.save_bank_details(owner_a, {"bankName": "Nedbank"})
        assert exc_info.value.details["fields"] == ["account_holder", "account_number"]

    def test_brand_color_must_be_hex(self, db_session, owner_a):
        with pytest.raises(ValidationError):
            owner_service.update_profile(owner_a, {"brand_color": "blue"})


class TestEmailSettings:
    def test_enable_weekly(self, db_session, owner_a):
        settings = owner_service.update_email_settings(owner_a, {
            "enabled": True,
            "frequency": "weekly",
            "recipient": "Reports@Thandi.example",
        })
        assert settings == {"enabled": True, "frequency": "weekly", "recipient": "reports@thandi.example"}

    def test_blank_recipient_falls_back_to_account_email(self, db_session, owner_a):
        settings = owner_service.update_email_settings(owner_a, {"enabled": True, "recipient": ""})
        assert settings["recipient"] == "thandi@example.com"

    def test_enabled_with_off_frequency_is_rejected(self, db_session, owner_a):
        with pytest.raises(ValidationError):
            owner_service.update_email_settings(owner_a, {"enabled": True, "frequency": "off"})

    def test_unknown_frequency(self, db_session, owner_a):
        with pytest.raises(ValidationError):
            owner_service.update_email_settings(owner_a, {"frequency": "monthly"})
