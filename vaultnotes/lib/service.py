"""Vault service: registration, sessions and item access on top of a blob store.

Crypto failures stop here. Callers get booleans or None back, and log lines
carry usernames, item ids and error class names only.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional
from . import items as item_ops
from .auth import AuthError, User
from .crypto import CryptoError, VaultCrypto
from .items import CredentialItem, Item, NoteItem
from .keys import KeyManager, KeyNotAvailable, SessionKey
from .rotation import rotate_items
from .storage import BlobStore, StorageError, load_state, save_state
from .vault import Vault

log = logging.getLogger(__name__)

@dataclass
class Session:
	user: User
	vault: Vault
	keys: KeyManager

	@property
	def key(self) -> SessionKey:
		return self.keys.key

class VaultService:
	def __init__(self, store: BlobStore, crypto: Optional[VaultCrypto] = None):
		self._store = store
		self._crypto = crypto or VaultCrypto()
		self.users, self.vaults = load_state(store, self._crypto)
		self._session: Optional[Session] = None

	# --- persistence ---

	def _save(self) -> None:
		save_state(self._store, self.users, self.vaults)

	# --- identity ---

	@property
	def current_user(self) -> Optional[User]:
		return self._session.user if self._session else None

	@property
	def logged_in(self) -> bool:
		return self._session is not None

	def register(self, username: str, password: str) -> User:
		"""Create a user and its vault together. Raises DuplicateUsername / AuthError."""
		user = self.users.build(username, password)
		keys = KeyManager.create(password, self._crypto)
		vault = Vault(user.id, keys.salt)
		keys.lock()
		self.users.add(user)
		self.vaults.add(vault)
		self._save()
		log.info('Registered user=%s', username)
		return user

	def login(self, username: str, password: str) -> bool:
		self.logout()
		try:
			ok = self.users.login(username, password)
		except CryptoError as e:
			log.warning('Stored credentials for user=%s are unreadable: %s', username, type(e).__name__)
			return False
		if not ok:
			log.info('Failed login for user=%s', username)
			return False
		user = self.users.get(username)
		vault = self.vaults.get(user.id)
		if vault is None:
			log.error('No vault found for user=%s', username)
			return False
		keys = KeyManager(vault.salt, self._crypto)
		keys.unlock(password)
		self._session = Session(user, vault, keys)
		log.info('User %s logged in', username)
		return True

	def logout(self) -> None:
		if self._session is None: return
		self._session.keys.lock()
		log.info('User %s logged out', self._session.user.username)
		self._session = None

	def reset_password(self, current: str, new: str) -> bool:
		"""Change the master password; items are re-encrypted under the new key.

		The new hash is only installed once rotation succeeded. If the save
		fails, the previous hash, items and key are restored and the
		StorageError propagates, so memory and store keep matching.
		"""
		session = self._require_session()
		user, vault = session.user, session.vault
		try:
			if not user.check_password(current, self._crypto):
				return False
		except CryptoError as e:
			log.warning('Password reset failed for user=%s: %s', user.username, type(e).__name__)
			return False
		if not new:
			raise AuthError('Empty password')
		old_hash, old_items = user.password_hash, vault.items
		new_hash = self._crypto.hash_password(new)
		session.keys.rekey(new, rotate=lambda old, fresh: rotate_items(vault, old, fresh, self._crypto))
		user.password_hash = new_hash
		try:
			self._save()
		except StorageError:
			user.password_hash = old_hash
			for item in old_items:
				vault.replace_item(item)
			session.keys.unlock(current)
			log.error('Password reset for user=%s not saved; rolled back', user.username)
			raise
		log.info('Password reset for user=%s', user.username)
		return True

	# --- items ---

	def _require_session(self) -> Session:
		if self._session is None:
			raise KeyNotAvailable('Not logged in')
		return self._session

	def add_credential(self, title: str, site: str, username: str, secret: str) -> CredentialItem:
		s = self._require_session()
		item = item_ops.new_credential(title, s.user.id, site, username, secret, s.key, self._crypto)
		s.vault.add_item(item)
		self._save()
		log.info('Added credential id=%s for user=%s', item.id, s.user.username)
		return item

	def add_note(self, title: str, text: str) -> NoteItem:
		s = self._require_session()
		item = item_ops.new_note(title, s.user.id, text, s.key, self._crypto)
		s.vault.add_item(item)
		self._save()
		log.info('Added note id=%s for user=%s', item.id, s.user.username)
		return item

	def get_item(self, item_id: str) -> Optional[Item]:
		return self._require_session().vault.get(item_id)

	def list_items(self) -> List[Item]:
		return self._require_session().vault.sorted_items()

	def search(self, keyword: str) -> Iterator[Item]:
		return self._require_session().vault.search(keyword)

	def delete_item(self, item_id: str) -> bool:
		s = self._require_session()
		item = s.vault.get(item_id)
		if item is None or not s.vault.remove_item(item):
			return False
		self._save()
		log.info('Deleted item id=%s for user=%s', item_id, s.user.username)
		return True

	def update_secret(self, item_id: str, plaintext: str) -> bool:
		s = self._require_session()
		item = s.vault.get(item_id)
		if item is None: return False
		s.vault.replace_item(item_ops.replace_secret(item, plaintext, s.key, self._crypto))
		self._save()
		return True

	def reveal(self, item_id: str) -> Optional[str]:
		"""Decrypted password / note text, or None if missing or undecryptable."""
		s = self._require_session()
		item = s.vault.get(item_id)
		if item is None: return None
		try:
			return item_ops.reveal(item, s.key, self._crypto)
		except CryptoError as e:
			log.warning('Could not decrypt item id=%s: %s', item_id, type(e).__name__)
			return None

	def generate_password(self) -> str:
		return self._crypto.generate_strong_password()

