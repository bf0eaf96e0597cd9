import pytest

from tilestitch.gap_decryption import InvalidEncryptedImage, decrypt

MARKER = bytes([10, 10, 10, 10])


def test_decrypt_dummy():
    encrypted = bytes(
        [10, 10, 10, 10]
        + [186, 186, 192, 192]
        + [16, 0, 0, 0]
        + [1] * 16
        + [222, 173, 190, 175]
        + [4, 0, 0, 0]
    )
    expected = bytes(
        [186, 186, 192, 192]
        + [202, 37, 17, 24, 3, 15, 249, 175, 241, 134, 189, 204, 188, 226, 106, 76]
        + [222, 173, 190, 175]
    )
    assert decrypt(encrypted) == expected


def test_unencrypted_data_is_unchanged():
    data = b"\xff\xd8\xff\xe0 some jpeg bytes"
    assert decrypt(data) == data


def test_empty_header_and_footer():
    encrypted = MARKER + bytes([16, 0, 0, 0]) + bytes([1] * 16) + bytes([0, 0, 0, 0])
    result = decrypt(encrypted)
    assert result == bytes(
        [202, 37, 17, 24, 3, 15, 249, 175, 241, 134, 189, 204, 188, 226, 106, 76]
    )


def test_bad_header_size():
    encrypted = MARKER + bytes([0, 0, 0, 0]) + bytes([100, 0, 0, 0])
    with pytest.raises(InvalidEncryptedImage, match="header"):
        decrypt(encrypted)


def test_bad_encrypted_size():
    encrypted = MARKER + bytes([200, 0, 0, 0]) + bytes([1] * 16) + bytes([0, 0, 0, 0])
    with pytest.raises(InvalidEncryptedImage, match="encrypted data"):
        decrypt(encrypted)


def test_encrypted_size_not_block_multiple():
    encrypted = MARKER + bytes([5, 0, 0, 0]) + bytes([1] * 5) + bytes([0, 0, 0, 0])
    with pytest.raises(InvalidEncryptedImage, match="decrypt"):
        decrypt(encrypted)


def test_too_short():
    with pytest.raises(InvalidEncryptedImage, match="read"):
        decrypt(b"ab")


def test_marker_only():
    with pytest.raises(InvalidEncryptedImage):
        decrypt(MARKER)