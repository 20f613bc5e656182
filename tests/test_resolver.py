"""Tests for client address resolution"""

import pytest
from gatekeeper.resolver import AddressResolver, RequestContext


class TestAddressResolver:
    """Tests for AddressResolver source precedence"""

    def test_client_ip_header_first(self):
        context = RequestContext(
            headers={"Client-IP": "203.0.113.1", "X-Forwarded-For": "198.51.100.2"},
            remote_addr="10.0.0.1"
        )
        assert AddressResolver(context).resolve() == "203.0.113.1"

    def test_forwarded_for_second(self):
        context = RequestContext(headers={"X-Forwarded-For": "198.51.100.2, 10.0.0.5"}, remote_addr="10.0.0.1")
        assert AddressResolver(context).resolve() == "198.51.100.2"

    def test_connection_address_last(self):
        context = RequestContext(remote_addr="10.0.0.1")
        assert AddressResolver(context).resolve() == "10.0.0.1"

    def test_nothing_present(self):
        assert AddressResolver(RequestContext()).resolve() is None

    def test_empty_header_skipped(self):
        context = RequestContext(headers={"Client-IP": "", "X-Forwarded-For": "198.51.100.2"})
        assert AddressResolver(context).resolve() == "198.51.100.2"

    def test_first_token_of_list(self):
        context = RequestContext(headers={"Client-IP": "203.0.113.1,203.0.113.2"})
        assert AddressResolver(context).resolve() == "203.0.113.1"

    def test_malformed_value_passed_through(self):
        """No syntax validation is done"""
        context = RequestContext(headers={"X-Forwarded-For": "unknown, 198.51.100.2"})
        assert AddressResolver(context).resolve() == "unknown"

    def test_custom_header_order(self):
        context = RequestContext(
            headers={"X-Real-IP": "192.0.2.9", "X-Forwarded-For": "198.51.100.2"},
            remote_addr="10.0.0.1"
        )
        resolver = AddressResolver(context, ["X-Real-IP", "X-Forwarded-For"])
        assert resolver.resolve() == "192.0.2.9"

    @pytest.mark.parametrize("value", [",", " , ", "   ", ",,,"])
    def test_separator_only_header_skipped(self, value):
        context = RequestContext(headers={"Client-IP": value}, remote_addr="198.51.100.4")
        assert AddressResolver(context).resolve() == "198.51.100.4"

    def test_separator_only_header_falls_to_next_header(self):
        context = RequestContext(
            headers={"Client-IP": " , ", "X-Forwarded-For": "203.0.113.1"},
            remote_addr="10.0.0.1"
        )
        assert AddressResolver(context).resolve() == "203.0.113.1"

    def test_blank_connection_address(self):
        context = RequestContext(headers={"X-Forwarded-For": ","}, remote_addr="  ")
        assert AddressResolver(context).resolve() is None


class TestResolveAll:
    """Tests for AddressResolver.resolve_all"""

    def test_deduplicated_in_order(self):
        context = RequestContext(
            headers={"X-Forwarded-For": "198.51.100.2, 10.0.0.5, 198.51.100.2,10.0.0.6"}
        )
        assert AddressResolver(context).resolve_all() == ["198.51.100.2", "10.0.0.5", "10.0.0.6"]

    def test_only_matched_source(self):
        context = RequestContext(
            headers={"Client-IP": "203.0.113.1", "X-Forwarded-For": "198.51.100.2"},
            remote_addr="10.0.0.1"
        )
        assert AddressResolver(context).resolve_all() == ["203.0.113.1"]

    def test_empty_tokens_dropped(self):
        context = RequestContext(headers={"X-Forwarded-For": " , 198.51.100.2,"})
        assert AddressResolver(context).resolve_all() == ["198.51.100.2"]

    def test_empty_when_nothing_present(self):
        assert AddressResolver(RequestContext()).resolve_all() == []


class TestRequestContext:
    """Tests for RequestContext"""

    def test_headers_lowercased(self):
        context = RequestContext(headers={"User-Agent": "UA", "Referer": "https://a.example/"})

        assert context.user_agent == "UA"
        assert context.referer == "https://a.example/"

    def test_missing_headers(self):
        context = RequestContext()

        assert context.user_agent is None
        assert context.referer is None

    def test_request_data_shape(self):
        context = RequestContext(headers={"Accept": "*/*"}, query={"q": "1"}, body={"a": "b"})

        assert context.request_data() == {
            "headers": {"accept": "*/*"},
            "post": {"a": "b"},
            "get": {"q": "1"},
        }
