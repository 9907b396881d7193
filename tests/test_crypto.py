import pytest

from voicedriver.crypto import (
    KEY_SIZE,
    NONCE_SIZE,
    RTP_HEADER_SIZE,
    TAG_SIZE,
    CryptoError,
    CryptoMode,
    CryptoState,
    DecodeMode,
)
from voicedriver.errors import ConnectionErrorKind, DriverConnectionError

TRUE_PAYLOAD = bytes([1, 2, 3, 4, 5, 6, 7, 8])
ALL_MODES = [CryptoMode.NORMAL, CryptoMode.LITE, CryptoMode.SUFFIX]


def _sealed_packet(mode, key):
    buf = bytearray(RTP_HEADER_SIZE + len(TRUE_PAYLOAD) + TAG_SIZE + NONCE_SIZE)
    state = CryptoState(mode)
    start = RTP_HEADER_SIZE + TAG_SIZE
    buf[start : start + len(TRUE_PAYLOAD)] = TRUE_PAYLOAD
    final_size = state.write_packet_nonce(buf, TAG_SIZE + len(TRUE_PAYLOAD))
    mode.encrypt_in_place(buf, key, final_size)
    return bytearray(buf[: RTP_HEADER_SIZE + final_size])


@pytest.mark.parametrize("mode", ALL_MODES)
def test_small_packet_decrypts_error(mode):
    packet = bytearray(RTP_HEADER_SIZE)
    with pytest.raises(CryptoError):
        CryptoMode.decrypt_in_place(mode, packet, bytes([1]) * KEY_SIZE)


@pytest.mark.parametrize("mode", ALL_MODES)
def test_symmetric_encrypt_decrypt(mode):
    key = bytes([7]) * KEY_SIZE
    packet = _sealed_packet(mode, key)
    start = RTP_HEADER_SIZE + TAG_SIZE
    assert packet[start : start + len(TRUE_PAYLOAD)] != TRUE_PAYLOAD

    skip = mode.decrypt_in_place(packet, key)
    assert skip == (TAG_SIZE, mode.payload_suffix_len())
    assert packet[start : start + len(TRUE_PAYLOAD)] == TRUE_PAYLOAD


@pytest.mark.parametrize("mode", ALL_MODES)
def test_tampered_packet_fails(mode):
    key = bytes([7]) * KEY_SIZE
    packet = _sealed_packet(mode, key)
    packet[RTP_HEADER_SIZE + TAG_SIZE] ^= 0xFF
    with pytest.raises(CryptoError):
        mode.decrypt_in_place(packet, key)


@pytest.mark.parametrize("mode", ALL_MODES)
def test_wrong_key_fails(mode):
    packet = _sealed_packet(mode, bytes([7]) * KEY_SIZE)
    with pytest.raises(CryptoError):
        mode.decrypt_in_place(packet, bytes([8]) * KEY_SIZE)


def test_bad_key_length_rejected():
    with pytest.raises(ValueError):
        CryptoMode.NORMAL.decrypt_in_place(bytearray(64), b"short")


def test_crypto_error_classifies_as_connection_error():
    err = DriverConnectionError.from_exception(CryptoError("bad"))
    assert err.kind is ConnectionErrorKind.CRYPTO


def test_request_strings():
    assert CryptoMode.NORMAL.to_request_str() == "xsalsa20_poly1305"
    assert CryptoMode.SUFFIX.to_request_str() == "xsalsa20_poly1305_suffix"
    assert CryptoMode.LITE.to_request_str() == "xsalsa20_poly1305_lite"


def test_sizes():
    assert CryptoMode.NORMAL.nonce_size() == RTP_HEADER_SIZE
    assert CryptoMode.SUFFIX.nonce_size() == NONCE_SIZE
    assert CryptoMode.LITE.nonce_size() == 4
    assert CryptoMode.NORMAL.payload_suffix_len() == 0
    for mode in ALL_MODES:
        assert mode.payload_prefix_len() == TAG_SIZE
        assert mode.payload_overhead() == TAG_SIZE + mode.payload_suffix_len()


def test_state_kind_round_trip():
    for mode in ALL_MODES:
        assert CryptoState(mode).kind() is mode


def test_lite_nonce_written_big_endian_and_wraps():
    state = CryptoState(CryptoMode.LITE, lite_nonce=0xFFFFFFFF)
    buf = bytearray(RTP_HEADER_SIZE + TAG_SIZE + 4)
    end = state.write_packet_nonce(buf, TAG_SIZE)
    assert end == TAG_SIZE + 4
    assert buf[RTP_HEADER_SIZE + TAG_SIZE :] == b"\xff\xff\xff\xff"
    assert state.lite_nonce == 0


def test_normal_writes_no_nonce():
    state = CryptoState(CryptoMode.NORMAL)
    buf = bytearray(RTP_HEADER_SIZE + TAG_SIZE + 8)
    assert state.write_packet_nonce(buf, TAG_SIZE + 8) == TAG_SIZE + 8
    assert buf == bytearray(len(buf))


def test_nonce_that_does_not_fit_is_rejected():
    state = CryptoState(CryptoMode.SUFFIX)
    with pytest.raises(ValueError):
        state.write_packet_nonce(bytearray(RTP_HEADER_SIZE + TAG_SIZE), TAG_SIZE)


def test_decode_mode_should_decrypt():
    assert DecodeMode.PASS.should_decrypt() is False
    assert DecodeMode.DECRYPT.should_decrypt() is True
    assert DecodeMode.DECODE.should_decrypt() is True