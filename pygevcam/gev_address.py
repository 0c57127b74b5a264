"""
IPv4 and MAC address helpers for GigE Vision configuration

Node maps expose addresses as integers, these convert them to and from the
dotted / colon separated forms that are printed and typed on the command line.
"""

import re

ZERO_SERIAL = "0"
ZERO_IP_ADDRESS = "0.0.0.0"
BROADCAST_ADDRESS = "255.255.255.255"

_leading_int = re.compile(r"\s*([+-]?\d+)")


def dotted_address(value:int) -> str:
    value = int(value) & 0xFFFFFFFF
    return f"{(value & 0xFF000000) >> 24}.{(value & 0x00FF0000) >> 16}.{(value & 0x0000FF00) >> 8}.{value & 0x000000FF}"


def mac_address(value:int) -> str:
    value = int(value)
    octets = [(value >> shift) & 0xFF for shift in (40, 32, 24, 16, 8, 0)]
    return ":".join(f"{octet:02X}" for octet in octets)


def normalize_mac(mac:str) -> str:
    return mac.replace("-", ":")


def mac_to_int(mac:str) -> int:
    return int(normalize_mac(mac).replace(":", ""), 16)


def split_address(address:str) -> list:
    """Split on '.', empty tokens are dropped"""
    return [token for token in address.split(".") if token]


def _atoi(token:str) -> int:
    match = _leading_int.match(token)
    return int(match.group(1)) if match else 0


def ipv4_to_int(address:str) -> int:
    """Convert x.x.x.x to an integer, each octet is taken modulo 256"""
    num = 0
    if not address:
        return num
    for i, token in enumerate(split_address(address)):
        num = int(num + (_atoi(token) % 256) * 256.0**(3-i))
    return num


def is_digits(token:str) -> bool:
    return all(c in "0123456789" for c in token)


def validate_ipv4(address:str, is_subnet_mask=False) -> bool:
    if not address or address == ZERO_IP_ADDRESS:
        return False
    if not is_subnet_mask and address == BROADCAST_ADDRESS:
        return False

    octets = split_address(address)
    if len(octets) != 4:
        return False
    for octet in octets:
        if not octet or not is_digits(octet):
            return False
        if int(octet) > 255:
            return False
    return True


def same_subnet(address:int, other:int, mask:int) -> bool:
    return (address & mask) == (other & mask)
