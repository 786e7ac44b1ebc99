import pytest

from idbridge.core.passwords import TEMP_PASSWORD_ALPHABET, generate_temp_password


def test_default_length_is_six():
    assert len(generate_temp_password()) == 6


def test_uses_unambiguous_alphabet():
    password = generate_temp_password(200)
    assert set(password) <= set(TEMP_PASSWORD_ALPHABET)
    assert not set("0Ol1I") & set(password)


def test_rejects_non_positive_length():
    with pytest.raises(ValueError):
        generate_temp_password(0)
