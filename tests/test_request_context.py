"""
Tests for visitor IP extraction and device classification.
"""

from starlette.requests import Request

from qr_redirect.core.request_context import (
    build_request_context,
    classify_device,
    get_client_ip,
    normalize_ip,
)

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
ANDROID_UA = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)
WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def make_request(headers=None, client=("203.0.113.9", 50000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/r/site-1",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestClientIP:

    def test_first_forwarded_for_entry_wins(self):
        request = make_request({"X-Forwarded-For": "198.51.100.7, 10.0.0.1"})
        assert get_client_ip(request) == "198.51.100.7"

    def test_falls_back_to_peer_address(self):
        assert get_client_ip(make_request()) == "203.0.113.9"

    def test_falls_back_to_unknown(self):
        assert get_client_ip(make_request(client=None)) == "unknown"


class TestNormalizeIP:

    def test_addresses_in_canonical_form(self):
        assert normalize_ip("198.51.100.7") == "198.51.100.7"
        assert normalize_ip(" 198.51.100.7 ") == "198.51.100.7"
        assert normalize_ip("2001:DB8:0:0:0:0:0:1") == "2001:db8::1"

    def test_everything_else_is_none(self):
        for value in [None, "", "unknown", "testclient", "1.2.3.4\tx", "1.2.3.4:8080", "999.1.1.1"]:
            assert normalize_ip(value) is None, repr(value)

    def test_oversized_scoped_ipv6_is_none(self):
        assert normalize_ip("fe80::1%" + "e" * 60) is None


class TestDeviceClassification:

    def test_mobile_user_agents(self):
        assert classify_device(IPHONE_UA) == "Mobile"
        assert classify_device(ANDROID_UA) == "Mobile"

    def test_everything_else_is_desktop(self):
        assert classify_device(WINDOWS_UA) == "Desktop"
        assert classify_device(IPAD_UA) == "Desktop"
        assert classify_device("curl/8.4.0") == "Desktop"
        assert classify_device("") == "Desktop"
        assert classify_device(None) == "Desktop"


def test_build_request_context():
    context = build_request_context(make_request({"User-Agent": IPHONE_UA}))

    assert context.ip == "203.0.113.9"
    assert context.device == "Mobile"


def test_build_request_context_drops_malformed_forwarded_ip():
    context = build_request_context(make_request({"X-Forwarded-For": "1.2.3.4\tx, 10.0.0.1"}))

    assert context.ip is None
    assert context.device == "Desktop"
