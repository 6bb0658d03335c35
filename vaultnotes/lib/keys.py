"""Key lifecycle: per-vault salt plus the session key derived from it.

States: UNINITIALIZED -> MATERIALIZED -> CLEARED. A key is only reachable
through a live SessionKey; after lock() or destroy() every access raises
KeyNotAvailable instead of handing out stale material.
"""
from __future__ import annotations
import enum, logging
from typing import Callable, Optional
from .crypto import VaultCrypto, zeroize
from config.settings import SALT_LENGTH

log = logging.getLogger(__name__)

class KeyNotAvailable(Exception):
	"""Raised when key material is requested outside an authenticated session."""

class KeyState(enum.Enum):
	UNINITIALIZED = 'uninitialized'
	MATERIALIZED = 'materialized'
	CLEARED = 'cleared'

class SessionKey:
	"""Capability wrapping derived key bytes for one session."""

	def __init__(self, material: bytes):
		self._buf = bytearray(material)
		self._alive = True

	@property
	def alive(self) -> bool:
		return self._alive

	def material(self) -> bytes:
		if not self._alive: raise KeyNotAvailable('Session key has been destroyed')
		return bytes(self._buf)

	def destroy(self) -> None:
		zeroize(self._buf)
		self._alive = False

	def __enter__(self) -> 'SessionKey':
		return self

	def __exit__(self, *exc) -> None:
		self.destroy()

	def __repr__(self) -> str:
		return f"<SessionKey {'alive' if self._alive else 'destroyed'}>"

RotateFn = Callable[[SessionKey, SessionKey], None]

class KeyManager:
	def __init__(self, salt: bytes, crypto: Optional[VaultCrypto] = None):
		if len(salt) != SALT_LENGTH: raise ValueError(f'Salt must be {SALT_LENGTH} bytes')
		self._salt = bytes(salt)
		self._crypto = crypto or VaultCrypto()
		self._key: Optional[SessionKey] = None
		self._state = KeyState.UNINITIALIZED

	@classmethod
	def create(cls, password: str, crypto: Optional[VaultCrypto] = None) -> 'KeyManager':
		"""New vault: fresh salt, key derived from the initial master password."""
		crypto = crypto or VaultCrypto()
		km = cls(crypto.generate_salt(), crypto)
		km.unlock(password)
		return km

	@property
	def salt(self) -> bytes:
		return self._salt

	@property
	def state(self) -> KeyState:
		return self._state

	@property
	def key(self) -> SessionKey:
		if self._state is not KeyState.MATERIALIZED or self._key is None or not self._key.alive:
			raise KeyNotAvailable('No session key; log in first')
		return self._key

	def _derive(self, password: str) -> SessionKey:
		return SessionKey(self._crypto.derive_key(password, self._salt))

	def unlock(self, password: str) -> SessionKey:
		"""Re-derive the key from the persisted salt. Caller verifies the password."""
		new = self._derive(password)
		self._install(new)
		return new

	def rekey(self, new_password: str, rotate: Optional[RotateFn] = None) -> SessionKey:
		"""Replace the session key with one derived from `new_password`.

		The salt stays the same. `rotate(old, new)` runs before the swap; if it
		raises, the new key is destroyed and the old one stays in place.
		"""
		old = self.key
		new = self._derive(new_password)
		if rotate is not None:
			try:
				rotate(old, new)
			except Exception:
				new.destroy()
				raise
		self._install(new)
		return new

	def lock(self) -> None:
		if self._key is not None:
			self._key.destroy()
			self._key = None
		if self._state is KeyState.MATERIALIZED:
			log.debug('Session key cleared')
		self._state = KeyState.CLEARED

	def _install(self, new: SessionKey) -> None:
		if self._key is not None and self._key is not new:
			self._key.destroy()
		self._key = new
		self._state = KeyState.MATERIALIZED
