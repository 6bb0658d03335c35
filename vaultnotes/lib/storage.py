"""Persistence collaborator: an opaque key -> bytes blob store.

The core only needs `load(key)` and `store(key, data)`. Users and vaults are
framed together as one JSON document under a single key, so every save is one
atomic write. Unreadable data is logged and treated as absent, so a damaged
store opens as empty instead of crashing.
"""
from __future__ import annotations
import json, logging, os, re, tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple
from .auth import UserRepository
from .crypto import VaultCrypto
from .vault import VaultRepository
from config.settings import DEFAULT_VAULT_PATH, STATE_KEY, USERS_KEY, VAULTS_KEY, RECORD_VERSION

log = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')

class StorageError(Exception): ...

class BlobStore(Protocol):
	def load(self, key: str) -> Optional[bytes]: ...
	def store(self, key: str, data: bytes) -> None: ...

class MemoryBlobStore:
	def __init__(self):
		self._blobs: Dict[str, bytes] = {}

	def load(self, key: str) -> Optional[bytes]:
		return self._blobs.get(key)

	def store(self, key: str, data: bytes) -> None:
		self._blobs[key] = bytes(data)

class FileBlobStore:
	"""One file per key inside a directory."""

	def __init__(self, path: Path | None = None):
		# Resolve path dynamically to honor environment overrides in tests
		if path is not None:
			self.path = Path(path)
		else:
			env_path = os.environ.get('VAULT_PATH')
			self.path = Path(env_path) if env_path else DEFAULT_VAULT_PATH

	def _file(self, key: str) -> Path:
		if not _KEY_PATTERN.match(key): raise StorageError(f'Invalid blob key: {key!r}')
		return self.path / f'{key}.dat'

	def load(self, key: str) -> Optional[bytes]:
		f = self._file(key)
		if not f.exists(): return None
		try:
			return f.read_bytes()
		except OSError as e:
			log.error('Failed to read %s: %s', f, e)
			return None

	def store(self, key: str, data: bytes) -> None:
		f = self._file(key)
		tmp = None
		try:
			self.path.mkdir(parents=True, exist_ok=True)
			fd, tmp = tempfile.mkstemp(dir=self.path, prefix=f'{key}.', suffix='.tmp')
			with os.fdopen(fd, 'wb') as out:
				out.write(data)
			os.replace(tmp, f)
		except OSError as e:
			if tmp is not None and os.path.exists(tmp):
				os.unlink(tmp)
			raise StorageError(f'Failed to write {f}: {e}') from e

def _load_document(store: BlobStore) -> dict:
	raw = store.load(STATE_KEY)
	if raw is None: return {}
	try:
		doc = json.loads(raw.decode('utf-8'))
	except (UnicodeDecodeError, json.JSONDecodeError) as e:
		log.error('Unreadable %s blob, treating as empty: %s', STATE_KEY, e)
		return {}
	if not isinstance(doc, dict):
		log.error('Unexpected %s blob layout, treating as empty', STATE_KEY)
		return {}
	if doc.get('version') != RECORD_VERSION:
		log.warning('%s blob has version %r, expected %r', STATE_KEY, doc.get('version'), RECORD_VERSION)
	return doc

def _section(doc: dict, name: str) -> list:
	records = doc.get(name, [])
	if not isinstance(records, list):
		log.error('Unexpected %s section layout, treating as empty', name)
		return []
	return records

def load_state(store: BlobStore, crypto: Optional[VaultCrypto] = None) -> Tuple[UserRepository, VaultRepository]:
	doc = _load_document(store)
	users = UserRepository.from_record(_section(doc, USERS_KEY), crypto)
	vaults = VaultRepository.from_record(_section(doc, VAULTS_KEY))
	return users, vaults

def save_state(store: BlobStore, users: UserRepository, vaults: VaultRepository) -> None:
	"""Write users and vaults as one blob, so a failed write leaves the previous pair intact."""
	doc = {'version': RECORD_VERSION, USERS_KEY: users.to_record(), VAULTS_KEY: vaults.to_record()}
	store.store(STATE_KEY, json.dumps(doc, indent=2).encode('utf-8'))
