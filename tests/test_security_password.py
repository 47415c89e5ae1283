from passlib.hash import bcrypt

from coursedesk.core.security_password import (
    PBKDF2_ITERATIONS,
    burn_verification,
    hash_password,
    identify_scheme,
    needs_update,
    verify_and_maybe_upgrade,
    verify_password,
)


def test_hash_has_primary_format():
    stored = hash_password("correct horse")
    _, scheme, iterations, salt, digest = stored.split("$")
    assert scheme == "pbkdf2"
    assert int(iterations) == PBKDF2_ITERATIONS
    assert len(bytes.fromhex(salt)) == 16
    assert len(bytes.fromhex(digest)) == 32


def test_same_password_gets_distinct_salts():
    assert hash_password("abc12345") != hash_password("abc12345")


def test_verify_roundtrip_and_wrong_password():
    stored = hash_password("correct horse", iterations=1000)
    assert verify_password("correct horse", stored)
    assert not verify_password("wrong horse", stored)
    assert not verify_password("", stored)


def test_malformed_or_unknown_hashes_never_verify():
    assert not verify_password("x", "$pbkdf2$abc$zz$zz")
    assert not verify_password("x", "$pbkdf2$1000$00")
    assert not verify_password("x", "plaintext")
    assert identify_scheme("plaintext") is None


def test_legacy_bcrypt_is_verified_and_upgraded():
    legacy = bcrypt.using(rounds=4).hash("old-secret")
    assert identify_scheme(legacy) == "bcrypt"

    ok, new_hash = verify_and_maybe_upgrade("old-secret", legacy)
    assert ok
    assert new_hash is not None and new_hash.startswith("$pbkdf2$")
    assert verify_password("old-secret", new_hash)

    assert verify_and_maybe_upgrade("nope", legacy) == (False, None)


def test_under_iterated_hash_needs_update():
    weak = hash_password("pw", iterations=1000)
    assert needs_update(weak)
    ok, new_hash = verify_and_maybe_upgrade("pw", weak)
    assert ok and not needs_update(new_hash)


def test_current_hash_is_not_rewritten():
    stored = hash_password("pw")
    assert verify_and_maybe_upgrade("pw", stored) == (True, None)


def test_burn_verification_accepts_anything():
    burn_verification("whatever")
    burn_verification("")
