"""Referral codes and the referrer's reward."""

import pytest

from app.crud.referrals import REFERRAL_XP, ReferralCRUD
from app.crud.user import UserCRUD
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def referrals(store):
    return ReferralCRUD(store)


def test_process_referral_rewards_the_referrer(referrals, make_user, store):
    alice = make_user("alice0001")
    make_user("bob")

    record = referrals.process_referral(alice["referral_code"].lower(), "bob")
    assert record["id"] == "alice0001_bob"
    assert record["xp_awarded"] == REFERRAL_XP

    users = UserCRUD(store)
    referrer = users.get_profile("alice0001")
    assert referrer["xp"] == 150
    assert referrer["level"] == 2
    assert referrer["referral_count"] == 1
    assert users.get_profile("bob")["referred_by"] == "alice0001"


def test_referral_errors(referrals, make_user):
    alice = make_user("alice0001")
    make_user("bob")
    make_user("carol")

    with pytest.raises(NotFoundError):
        referrals.process_referral("REFNOPE", "bob")
    with pytest.raises(ValidationError):
        referrals.process_referral(alice["referral_code"], "alice0001")

    referrals.process_referral(alice["referral_code"], "bob")
    with pytest.raises(ConflictError):
        referrals.process_referral(alice["referral_code"], "bob")


def test_stats(referrals, make_user):
    alice = make_user("alice0001")
    make_user("bob")
    make_user("carol")
    referrals.process_referral(alice["referral_code"], "bob")
    referrals.process_referral(alice["referral_code"], "carol")

    stats = referrals.stats("alice0001")
    assert stats["referral_code"] == "REFALICE000"
    assert stats["referral_count"] == 2
    assert stats["xp_earned"] == 300
    assert {r["referred_id"] for r in stats["referrals"]} == {"bob", "carol"}
    assert referrals.stats("bob")["referred_by"] == "alice0001"
