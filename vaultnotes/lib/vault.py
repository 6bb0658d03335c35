"""Per-user vault: owner, key-derivation salt and an ordered list of items.

The persisted record holds the salt but never key bytes; the key is
re-derived from (password, salt) at every session start.
"""
from __future__ import annotations
import base64, binascii, logging
from typing import Any, Dict, Iterator, List, Optional, Sequence
from .items import Item, EntryError, item_from_record, item_to_record, summary
from config.settings import SALT_LENGTH

log = logging.getLogger(__name__)

class OwnershipMismatch(Exception):
	pass

class Vault:
	def __init__(self, owner_id: str, salt: bytes, items: Sequence[Item] = ()):
		if not owner_id: raise ValueError('Vault needs an owner id')
		if len(salt) != SALT_LENGTH: raise ValueError(f'Salt must be {SALT_LENGTH} bytes')
		self._owner_id = owner_id
		self._salt = bytes(salt)
		self._items: List[Item] = []
		for item in items:
			self.add_item(item)

	@property
	def owner_id(self) -> str:
		return self._owner_id

	@property
	def salt(self) -> bytes:
		return self._salt

	@property
	def items(self) -> tuple[Item, ...]:
		return tuple(self._items)

	def __len__(self) -> int:
		return len(self._items)

	def __iter__(self) -> Iterator[Item]:
		return iter(tuple(self._items))

	def __repr__(self) -> str:
		return f'<Vault owner={self._owner_id} items={len(self._items)}>'

	def get(self, item_id: str) -> Optional[Item]:
		return next((i for i in self._items if i.id == item_id), None)

	def add_item(self, item: Item) -> None:
		if item.owner_id != self._owner_id:
			raise OwnershipMismatch('Item does not belong to this vault')
		self._items.append(item)

	def remove_item(self, item: Item) -> bool:
		for idx, existing in enumerate(self._items):
			if existing.id == item.id:
				del self._items[idx]
				return True
		return False

	def replace_item(self, item: Item) -> None:
		"""Swap in a re-encrypted copy of an item already in the vault."""
		if item.owner_id != self._owner_id:
			raise OwnershipMismatch('Item does not belong to this vault')
		for idx, existing in enumerate(self._items):
			if existing.id == item.id:
				self._items[idx] = item
				return
		raise EntryError('Entry not found')

	def sorted_items(self) -> List[Item]:
		return sorted(self._items, key=lambda i: i.title.lower())

	def search(self, keyword: str) -> Iterator[Item]:
		"""Case-insensitive match on title and summary, never on decrypted content.

		Every call returns a new generator that scans the current items in order.
		"""
		needle = keyword.lower()
		return (i for i in tuple(self._items) if needle in i.title.lower() or needle in summary(i).lower())

	def to_record(self) -> Dict[str, Any]:
		return {
			'owner_id': self._owner_id,
			'salt': base64.b64encode(self._salt).decode('ascii'),
			'items': [item_to_record(i) for i in self._items],
		}

	@classmethod
	def from_record(cls, raw: Dict[str, Any]) -> 'Vault':
		"""Rebuild a vault. Bad item records are skipped; a bad header raises ValueError."""
		if not isinstance(raw, dict): raise ValueError('Vault record is not a mapping')
		try:
			salt = base64.b64decode(raw['salt'], validate=True)
			owner_id = raw['owner_id']
		except (KeyError, TypeError, binascii.Error) as e:
			raise ValueError(f'Malformed vault header: {e}') from e
		if not isinstance(owner_id, str): raise ValueError('Owner id must be a string')
		if 'key' in raw:
			log.warning('Ignoring persisted key material for owner=%s', owner_id)
		vault = cls(owner_id, salt)
		for rec in raw.get('items') or []:
			try:
				vault.add_item(item_from_record(rec))
			except (EntryError, OwnershipMismatch, TypeError) as e:
				log.warning('Skipping malformed item in vault owner=%s: %s', owner_id, e)
		return vault

class VaultRepository:
	"""Vaults keyed by owner id."""

	def __init__(self):
		self._vaults: Dict[str, Vault] = {}

	def __len__(self) -> int:
		return len(self._vaults)

	def __contains__(self, owner_id: object) -> bool:
		return owner_id in self._vaults

	def get(self, owner_id: str) -> Optional[Vault]:
		return self._vaults.get(owner_id)

	def add(self, vault: Vault) -> None:
		if vault.owner_id in self._vaults:
			raise ValueError(f'Vault already exists for owner {vault.owner_id}')
		self._vaults[vault.owner_id] = vault

	def to_record(self) -> list[Dict[str, Any]]:
		return [v.to_record() for v in self._vaults.values()]

	@classmethod
	def from_record(cls, records: list) -> 'VaultRepository':
		repo = cls()
		for raw in records:
			try:
				repo.add(Vault.from_record(raw))
			except (ValueError, TypeError) as e:
				log.warning('Skipping malformed vault record: %s', e)
		return repo
