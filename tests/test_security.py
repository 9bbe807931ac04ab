"""
Tests for password hashing, token comparison and email masking.
"""
import hashlib

import pytest
from pydantic import ValidationError

from app.models.user import SignupRequest
from app.services.trust_ledger import USERS_COLLECTION
from app.utils.security import hash_password, mask_email, tokens_match, verify_password


class TestPasswordHashing:

    def test_same_password_gets_distinct_hashes(self):
        first = hash_password("civicwatch")
        second = hash_password("civicwatch")

        assert first != second
        assert verify_password("civicwatch", first)
        assert verify_password("civicwatch", second)

    def test_hash_is_bcrypt_not_plain_digest(self):
        stored = hash_password("civicwatch")

        assert stored.startswith("$2")
        assert "civicwatch" not in stored
        assert stored != hashlib.sha256(b"civicwatch").hexdigest()

    def test_wrong_password_rejected(self):
        assert not verify_password("guess", hash_password("civicwatch"))

    def test_missing_or_malformed_hash_rejected(self):
        assert not verify_password("civicwatch", None)
        assert not verify_password("civicwatch", "")
        assert not verify_password("civicwatch", "not-a-bcrypt-hash")

    def test_signups_with_same_password_store_distinct_hashes(self, services):
        first = services.users.signup(SignupRequest(email="a@civic.gov", password="samepass"))["user"]
        second = services.users.signup(SignupRequest(email="b@civic.gov", password="samepass"))["user"]

        users = services.db.collection(USERS_COLLECTION)
        hashes = [users.document(uid).get().to_dict()["password_hash"] for uid in (first.uid, second.uid)]
        assert hashes[0] != hashes[1]


class TestTokensMatch:

    def test_match(self):
        assert tokens_match("abc", "abc")

    def test_missing_side_never_matches(self):
        assert not tokens_match("", "")
        assert not tokens_match(None, "abc")
        assert not tokens_match("abc", None)


class TestMaskEmail:

    def test_masks_local_part(self):
        assert mask_email("road.dept@city.gov") == "r***t@city.gov"

    def test_non_address_unchanged(self):
        assert mask_email("nobody") == "nobody"
        assert mask_email(None) is None


class TestSignupPassword:

    def test_password_longer_than_bcrypt_limit_rejected(self):
        with pytest.raises(ValidationError):
            SignupRequest(email="a@civic.gov", password="é" * 40)
