import pytest

from pygevcam import gev_address


def test_dotted_address():
    assert gev_address.dotted_address(0xC0A8000A) == "192.168.0.10"
    assert gev_address.dotted_address(0) == "0.0.0.0"
    assert gev_address.dotted_address(0xFFFFFFFF) == "255.255.255.255"


def test_ipv4_to_int():
    assert gev_address.ipv4_to_int("192.168.0.10") == 0xC0A8000A
    assert gev_address.ipv4_to_int("") == 0
    # octets wrap modulo 256
    assert gev_address.ipv4_to_int("256.1.1.1") == 0x00010101


def test_ipv4_round_trip_through_dotted():
    for address in ("10.0.0.1", "172.16.254.3", "255.255.255.0"):
        assert gev_address.dotted_address(gev_address.ipv4_to_int(address)) == address


def test_mac_address():
    assert gev_address.mac_address(0x00111C000001) == "00:11:1C:00:00:01"
    assert gev_address.mac_to_int("00-11-1c-00-00-01") == 0x00111C000001
    assert gev_address.normalize_mac("00-11-1C-00-00-01") == "00:11:1C:00:00:01"


def test_split_address_drops_empty_tokens():
    assert gev_address.split_address("1..2.3") == ["1", "2", "3"]


@pytest.mark.parametrize("address, is_mask, expected", [
    ("192.168.0.10", False, True),
    ("255.255.255.0", True, True),
    ("0.0.0.0", False, False),
    ("0.0.0.0", True, False),
    ("255.255.255.255", False, False),
    ("255.255.255.255", True, True),
    ("192.168.0", False, False),
    ("192.168.0.256", False, False),
    ("192.168.a.1", False, False),
    ("", False, False),
])
def test_validate_ipv4(address, is_mask, expected):
    assert gev_address.validate_ipv4(address, is_subnet_mask=is_mask) is expected


def test_same_subnet():
    mask = gev_address.ipv4_to_int("255.255.255.0")
    first = gev_address.ipv4_to_int("192.168.0.10")
    assert gev_address.same_subnet(first, gev_address.ipv4_to_int("192.168.0.200"), mask)
    assert not gev_address.same_subnet(first, gev_address.ipv4_to_int("192.168.1.10"), mask)
