"""Project configuration settings.

Crypto constants are part of the persisted byte layout; changing any of them
makes existing vaults unreadable.
"""

from pathlib import Path
import os

# Security / crypto
KDF_ITERATIONS = 65_536  # PBKDF2-HMAC-SHA256
MIN_KDF_ITERATIONS = 65_536
SALT_LENGTH = 16
KEY_LENGTH = 32  # AES-256
NONCE_LENGTH = 12  # GCM nonce
AUTH_TAG_LENGTH = 16  # GCM tag
HASH_LENGTH = 32  # derived bytes in a password hash blob

# Password generator
GENERATED_PASSWORD_LENGTH = 16
PASSWORD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*()-_=+"

# Storage
DEFAULT_VAULT_PATH = Path(os.environ.get("VAULT_PATH", "vault_data"))
STATE_KEY = "vault"  # single blob holding both sections below
USERS_KEY = "users"
VAULTS_KEY = "vaults"
RECORD_VERSION = 1

# Entry types
ENTRY_TYPES = {"credential": "Password", "note": "Note"}

# Logging
LOG_LEVEL = os.environ.get("VAULT_LOG_LEVEL", "WARNING")

__all__ = [
	'KDF_ITERATIONS','MIN_KDF_ITERATIONS','SALT_LENGTH','KEY_LENGTH','NONCE_LENGTH','AUTH_TAG_LENGTH','HASH_LENGTH',
	'GENERATED_PASSWORD_LENGTH','PASSWORD_ALPHABET','DEFAULT_VAULT_PATH','STATE_KEY','USERS_KEY','VAULTS_KEY','RECORD_VERSION',
	'ENTRY_TYPES','LOG_LEVEL'
]
