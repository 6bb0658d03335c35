"""Cryptographic primitives (key derivation, AEAD, password hashing).

Blob layouts (Base64 text):
	encrypted field = nonce[12] || ciphertext[n] || tag[16]   (AES-256-GCM)
	password hash   = salt[16] || derived[32]                 (PBKDF2-HMAC-SHA256)

Never log plaintext, derived keys or password hashes.
"""
from __future__ import annotations
import base64, secrets
from cryptography.exceptions import InvalidKey, InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from config.settings import (
	KDF_ITERATIONS, MIN_KDF_ITERATIONS, SALT_LENGTH, KEY_LENGTH, NONCE_LENGTH, AUTH_TAG_LENGTH, HASH_LENGTH,
	GENERATED_PASSWORD_LENGTH, PASSWORD_ALPHABET
)

class CryptoError(Exception):
	"""Base class for every failure raised by this module."""

class FormatError(CryptoError):
	"""Blob is not valid Base64 or has the wrong length."""

class AuthenticationFailure(CryptoError):
	"""Tag did not verify: wrong key, or the blob was tampered with."""

class KdfError(CryptoError):
	"""Key derivation primitive unavailable or misconfigured."""

class EncryptionError(CryptoError):
	"""Encryption primitive failed."""

def _b64decode(token: str | bytes) -> bytes:
	try:
		return base64.b64decode(token, validate=True)
	except (ValueError, TypeError):
		raise FormatError('Blob is not valid Base64') from None

def _b64encode(raw: bytes) -> str:
	return base64.b64encode(raw).decode('ascii')

def zeroize(buf: bytearray) -> None:
	"""Overwrite a mutable key buffer in place."""
	for i in range(len(buf)):
		buf[i] = 0

class VaultCrypto:
	def __init__(self, iterations: int = KDF_ITERATIONS):
		if iterations < MIN_KDF_ITERATIONS:
			raise KdfError(f'Iteration count below {MIN_KDF_ITERATIONS}')
		self.iterations = iterations

	def generate_salt(self) -> bytes:
		return secrets.token_bytes(SALT_LENGTH)

	def _kdf(self, salt: bytes, length: int) -> PBKDF2HMAC:
		try:
			return PBKDF2HMAC(algorithm=hashes.SHA256(), length=length, salt=salt, iterations=self.iterations)
		except UnsupportedAlgorithm as e:
			raise KdfError(f'PBKDF2-HMAC-SHA256 unavailable: {e}') from e

	def derive_key(self, password: str, salt: bytes) -> bytes:
		"""Stretch `password` with `salt` into a 256-bit key. Deterministic."""
		if len(salt) != SALT_LENGTH:
			raise KdfError(f'Salt must be {SALT_LENGTH} bytes')
		return self._kdf(salt, KEY_LENGTH).derive(password.encode('utf-8'))

	def encrypt(self, plaintext: bytes, key: bytes) -> str:
		"""Encrypt under a fresh random nonce and return the Base64 blob."""
		if len(key) != KEY_LENGTH: raise EncryptionError('Bad key length')
		nonce = secrets.token_bytes(NONCE_LENGTH)
		try:
			enc = Cipher(algorithms.AES(bytes(key)), modes.GCM(nonce)).encryptor()
			ct = enc.update(plaintext) + enc.finalize()
		except (ValueError, TypeError) as e:
			raise EncryptionError(f'Encrypt failed: {e}') from e
		return _b64encode(nonce + ct + enc.tag)

	def decrypt(self, blob: str, key: bytes) -> bytes:
		"""Verify and decrypt a blob produced by `encrypt`.

		Raises FormatError for undecodable or truncated input and
		AuthenticationFailure when the tag does not verify. No plaintext is
		returned unless the whole message authenticates.
		"""
		if len(key) != KEY_LENGTH: raise EncryptionError('Bad key length')
		raw = _b64decode(blob)
		if len(raw) < NONCE_LENGTH + AUTH_TAG_LENGTH: raise FormatError('Ciphertext too short')
		nonce = raw[:NONCE_LENGTH]; tag = raw[-AUTH_TAG_LENGTH:]; ct = raw[NONCE_LENGTH:-AUTH_TAG_LENGTH]
		dec = Cipher(algorithms.AES(bytes(key)), modes.GCM(nonce, tag)).decryptor()
		try:
			return dec.update(ct) + dec.finalize()
		except InvalidTag:
			raise AuthenticationFailure('Authentication failed') from None

	def encrypt_text(self, text: str, key: bytes) -> str:
		return self.encrypt(text.encode('utf-8'), key)

	def decrypt_text(self, token: str, key: bytes) -> str:
		try:
			return self.decrypt(token, key).decode('utf-8')
		except UnicodeDecodeError:
			raise FormatError('Plaintext is not UTF-8') from None

	def hash_password(self, password: str) -> str:
		salt = self.generate_salt()
		derived = self._kdf(salt, HASH_LENGTH).derive(password.encode('utf-8'))
		return _b64encode(salt + derived)

	def verify_password(self, password: str, stored: str) -> bool:
		"""Check `password` against a blob from `hash_password`.

		The comparison runs in constant time inside PBKDF2HMAC.verify. A plain
		mismatch returns False; only a structurally invalid blob raises.
		"""
		raw = _b64decode(stored)
		if len(raw) != SALT_LENGTH + HASH_LENGTH: raise FormatError('Password hash has wrong length')
		salt = raw[:SALT_LENGTH]; expected = raw[SALT_LENGTH:]
		try:
			self._kdf(salt, HASH_LENGTH).verify(password.encode('utf-8'), expected)
		except InvalidKey:
			return False
		return True

	def generate_strong_password(self, length: int = GENERATED_PASSWORD_LENGTH) -> str:
		return ''.join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))

_default = VaultCrypto()

generate_salt = _default.generate_salt
derive_key = _default.derive_key
encrypt = _default.encrypt
decrypt = _default.decrypt
encrypt_text = _default.encrypt_text
decrypt_text = _default.decrypt_text
hash_password = _default.hash_password
verify_password = _default.verify_password
generate_strong_password = _default.generate_strong_password
