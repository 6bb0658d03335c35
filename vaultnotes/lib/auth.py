"""Authentication (users, login, password reset)."""
from __future__ import annotations
import logging, uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Any
from .crypto import VaultCrypto

log = logging.getLogger(__name__)

class AuthError(Exception):
	pass

class DuplicateUsername(AuthError):
	pass

@dataclass
class User:
	username: str
	password_hash: str
	id: str = field(default_factory=lambda: uuid.uuid4().hex)

	def check_password(self, password: str, crypto: Optional[VaultCrypto] = None) -> bool:
		return (crypto or VaultCrypto()).verify_password(password, self.password_hash)

	def reset_password(self, current: str, new: str, crypto: Optional[VaultCrypto] = None) -> bool:
		"""Replace the hash if `current` verifies; otherwise leave it untouched."""
		crypto = crypto or VaultCrypto()
		if not crypto.verify_password(current, self.password_hash):
			return False
		if not new:
			raise AuthError('Empty password')
		self.password_hash = crypto.hash_password(new)
		log.info('Password reset for user=%s', self.username)
		return True

	def __repr__(self) -> str:
		return f'User(id={self.id!r}, username={self.username!r})'

class UserRepository:
	"""Users keyed by exact (case-sensitive) username."""

	def __init__(self, crypto: Optional[VaultCrypto] = None):
		self._crypto = crypto or VaultCrypto()
		self._users: Dict[str, User] = {}

	def __len__(self) -> int:
		return len(self._users)

	def __contains__(self, username: object) -> bool:
		return username in self._users

	def __iter__(self):
		return iter(self._users.values())

	def get(self, username: str) -> Optional[User]:
		return self._users.get(username)

	def get_by_id(self, user_id: str) -> Optional[User]:
		return next((u for u in self._users.values() if u.id == user_id), None)

	def build(self, username: str, password: str) -> User:
		"""Validate and hash, without inserting. Raises DuplicateUsername."""
		if not username or not password:
			raise AuthError('Username and password cannot be empty')
		if username in self._users:
			raise DuplicateUsername(f'Username already exists: {username}')
		return User(username, self._crypto.hash_password(password))

	def add(self, user: User) -> None:
		if user.username in self._users:
			raise DuplicateUsername(f'Username already exists: {user.username}')
		self._users[user.username] = user

	def register(self, username: str, password: str) -> User:
		user = self.build(username, password)
		self.add(user)
		log.info('Registered user=%s', username)
		return user

	def login(self, username: str, password: str) -> bool:
		"""True if the credentials match. Raises FormatError only for a corrupt stored hash."""
		user = self._users.get(username)
		if user is None:
			return False
		return user.check_password(password, self._crypto)

	def to_record(self) -> list[Dict[str, Any]]:
		return [{'id': u.id, 'username': u.username, 'password_hash': u.password_hash} for u in self._users.values()]

	@classmethod
	def from_record(cls, records: list, crypto: Optional[VaultCrypto] = None) -> 'UserRepository':
		repo = cls(crypto)
		for raw in records:
			try:
				user = User(username=raw['username'], password_hash=raw['password_hash'], id=raw['id'])
				if not all(isinstance(v, str) and v for v in (user.username, user.password_hash, user.id)):
					raise ValueError('empty or non-string field')
				repo.add(user)
			except (KeyError, TypeError, ValueError, AuthError) as e:
				log.warning('Skipping malformed user record: %s', e)
		return repo
