"""Encrypted vault items.

An item is one of a closed set of kinds (credential, note) sharing id, title,
owner and creation time. Each kind has exactly one sensitive field held as an
AES-GCM blob; plaintext only exists for the duration of the call that
encrypts or decrypts it.
"""
from __future__ import annotations
import dataclasses, uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union
from .crypto import VaultCrypto
from .keys import SessionKey
from config.settings import ENTRY_TYPES

class EntryError(Exception): ...

def _now() -> str:
	return datetime.now().isoformat()

def _new_id() -> str:
	return uuid.uuid4().hex

def _check_common(title: str, owner_id: str) -> None:
	if not isinstance(title, str) or not title.strip():
		raise EntryError('Title cannot be empty')
	if not isinstance(owner_id, str) or not owner_id:
		raise EntryError('Owner id cannot be empty')

@dataclass(frozen=True)
class CredentialItem:
	title: str
	owner_id: str
	site: str
	username: str
	secret: str  # encrypted blob
	id: str = field(default_factory=_new_id)
	created: str = field(default_factory=_now)

	def __post_init__(self):
		_check_common(self.title, self.owner_id)

@dataclass(frozen=True)
class NoteItem:
	title: str
	owner_id: str
	text: str  # encrypted blob
	id: str = field(default_factory=_new_id)
	created: str = field(default_factory=_now)

	def __post_init__(self):
		_check_common(self.title, self.owner_id)

Item = Union[CredentialItem, NoteItem]

def _crypto(crypto: Optional[VaultCrypto]) -> VaultCrypto:
	return crypto or VaultCrypto()

def new_credential(title: str, owner_id: str, site: str, username: str, secret: str, key: SessionKey, crypto: Optional[VaultCrypto] = None) -> CredentialItem:
	_check_common(title, owner_id)
	blob = _crypto(crypto).encrypt_text(secret, key.material())
	return CredentialItem(title=title, owner_id=owner_id, site=site, username=username, secret=blob)

def new_note(title: str, owner_id: str, text: str, key: SessionKey, crypto: Optional[VaultCrypto] = None) -> NoteItem:
	_check_common(title, owner_id)
	blob = _crypto(crypto).encrypt_text(text, key.material())
	return NoteItem(title=title, owner_id=owner_id, text=blob)

def kind_of(item: Item) -> str:
	match item:
		case CredentialItem():
			return 'credential'
		case NoteItem():
			return 'note'
	raise EntryError(f'Unknown item type: {type(item).__name__}')

def _blob(item: Item) -> str:
	match item:
		case CredentialItem(secret=blob):
			return blob
		case NoteItem(text=blob):
			return blob
	raise EntryError(f'Unknown item type: {type(item).__name__}')

def _with_blob(item: Item, blob: str) -> Item:
	match item:
		case CredentialItem():
			return dataclasses.replace(item, secret=blob)
		case NoteItem():
			return dataclasses.replace(item, text=blob)
	raise EntryError(f'Unknown item type: {type(item).__name__}')

def reveal(item: Item, key: SessionKey, crypto: Optional[VaultCrypto] = None) -> str:
	"""Decrypt the item's sensitive field (password or note text)."""
	return _crypto(crypto).decrypt_text(_blob(item), key.material())

def replace_secret(item: Item, plaintext: str, key: SessionKey, crypto: Optional[VaultCrypto] = None) -> Item:
	return _with_blob(item, _crypto(crypto).encrypt_text(plaintext, key.material()))

def reencrypt(item: Item, old_key: SessionKey, new_key: SessionKey, crypto: Optional[VaultCrypto] = None) -> Item:
	crypto = _crypto(crypto)
	return _with_blob(item, crypto.encrypt(crypto.decrypt(_blob(item), old_key.material()), new_key.material()))

def summary(item: Item) -> str:
	match item:
		case CredentialItem(title=title, site=site):
			return f'{ENTRY_TYPES["credential"]}: {title} ({site})'
		case NoteItem(title=title):
			return f'{ENTRY_TYPES["note"]}: {title}'
	raise EntryError(f'Unknown item type: {type(item).__name__}')

def details(item: Item) -> str:
	"""Multi-line description without the sensitive field."""
	match item:
		case CredentialItem():
			return f'Title: {item.title}\nSite Name: {item.site}\nUsername: {item.username}\nCreated Date: {item.created}'
		case NoteItem():
			return f'Title: {item.title}\nCreated Date: {item.created}'
	raise EntryError(f'Unknown item type: {type(item).__name__}')

def item_to_record(item: Item) -> Dict[str, Any]:
	rec = {'kind': kind_of(item)}
	rec.update(dataclasses.asdict(item))
	return rec

def item_from_record(raw: Dict[str, Any]) -> Item:
	if not isinstance(raw, dict):
		raise EntryError('Item record is not a mapping')
	fields = dict(raw)
	kind = fields.pop('kind', None)
	cls = {'credential': CredentialItem, 'note': NoteItem}.get(kind)
	if cls is None:
		raise EntryError(f'Unknown item kind: {kind!r}')
	names = {f.name for f in dataclasses.fields(cls)}
	if set(fields) != names or not all(isinstance(v, str) for v in fields.values()):
		raise EntryError(f'Malformed {kind} record')
	return cls(**fields)
