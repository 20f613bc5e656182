"""Gatekeeper exceptions"""


class GatekeeperError(Exception):
    """Base exception for Gatekeeper"""
    pass


class AddressResolutionError(GatekeeperError):
    """No client address could be determined for the request"""
    pass
