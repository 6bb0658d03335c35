"""Configuration settings and constants for vaultnotes.

Everything lives in `config.settings`; this package re-exports it so callers
can write `from config import KDF_ITERATIONS`.
"""

from .settings import (
	KDF_ITERATIONS, MIN_KDF_ITERATIONS, SALT_LENGTH, KEY_LENGTH, NONCE_LENGTH, AUTH_TAG_LENGTH, HASH_LENGTH,
	GENERATED_PASSWORD_LENGTH, PASSWORD_ALPHABET, DEFAULT_VAULT_PATH, STATE_KEY, USERS_KEY, VAULTS_KEY, RECORD_VERSION,
	ENTRY_TYPES, LOG_LEVEL
)

__all__ = [
	'KDF_ITERATIONS', 'MIN_KDF_ITERATIONS', 'SALT_LENGTH', 'KEY_LENGTH', 'NONCE_LENGTH', 'AUTH_TAG_LENGTH',
	'HASH_LENGTH', 'GENERATED_PASSWORD_LENGTH', 'PASSWORD_ALPHABET', 'DEFAULT_VAULT_PATH', 'STATE_KEY', 'USERS_KEY',
	'VAULTS_KEY', 'RECORD_VERSION', 'ENTRY_TYPES', 'LOG_LEVEL'
]
