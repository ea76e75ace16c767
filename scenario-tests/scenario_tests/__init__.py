"""End-to-end scenario testing for cargo-coverage."""

from .fake_tools import install_fake_tools, write_fake_crate, read_calls, format_call

__all__ = [
    "install_fake_tools",
    "write_fake_crate",
    "read_calls",
    "format_call",
]
