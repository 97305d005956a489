"""
Configuration management for the SAID SDK.

Loads settings from environment variables and an optional .env file and
exposes them through ClientConfig.
"""

from said_sdk.config.env import ClientConfig, get_program_id, get_solana_rpc_url  # noqa: F401

__all__ = ["ClientConfig", "get_program_id", "get_solana_rpc_url"]
