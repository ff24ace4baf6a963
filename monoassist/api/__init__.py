"""HTTP endpoints served next to the Mesop UI."""

from monoassist.api.relay import create_relay_app, relay_bp

__all__ = ["create_relay_app", "relay_bp"]
