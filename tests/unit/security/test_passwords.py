from peerpresence.security.passwords import hash_password, random_password, verify_password


def test_hash_and_verify():
    hashed = hash_password("hunter22")

    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


def test_verify_handles_missing_or_malformed_hash():
    assert not verify_password("hunter22", None)
    assert not verify_password("hunter22", "not-a-bcrypt-hash")
    assert not verify_password("", hash_password("x"))


def test_random_passwords_differ():
    assert random_password() != random_password()
    assert len(random_password()) >= 24
