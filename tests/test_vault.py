import secrets, types
import pytest
from vaultnotes.lib.crypto import generate_salt
from vaultnotes.lib.items import EntryError, new_credential, new_note, item_to_record, replace_secret, reveal
from vaultnotes.lib.keys import SessionKey
from vaultnotes.lib.rotation import rotate_items
from vaultnotes.lib.vault import OwnershipMismatch, Vault, VaultRepository

@pytest.fixture
def key():
	return SessionKey(secrets.token_bytes(32))

@pytest.fixture
def vault():
	return Vault('owner1', generate_salt())

def test_add_and_remove(vault, key):
	item = new_credential('Example', 'owner1', 'example.com', 'alice', 'p@ss', key)
	vault.add_item(item)
	assert len(vault) == 1 and vault.get(item.id) is item
	assert vault.remove_item(item) is True
	assert vault.remove_item(item) is False
	assert len(vault) == 0

def test_foreign_item_rejected(vault, key):
	with pytest.raises(OwnershipMismatch):
		vault.add_item(new_note('T', 'someone-else', 'x', key))
	assert len(vault) == 0

def test_replace_item(vault, key):
	item = new_credential('T', 'owner1', 's', 'u', 'old', key)
	vault.add_item(item)
	vault.replace_item(replace_secret(item, 'new', key))
	assert reveal(vault.get(item.id), key) == 'new'
	with pytest.raises(EntryError):
		vault.replace_item(new_note('Other', 'owner1', 'x', key))

def test_sorted_items(vault, key):
	for title in ['beta', 'Alpha', 'gamma']:
		vault.add_item(new_note(title, 'owner1', 'x', key))
	assert [i.title for i in vault.sorted_items()] == ['Alpha', 'beta', 'gamma']
	assert [i.title for i in vault.items] == ['beta', 'Alpha', 'gamma']

def test_search_title_and_summary(vault, key):
	cred = new_credential('Bank', 'owner1', 'example.com', 'alice', 'hunter2', key)
	note = new_note('Shopping list', 'owner1', 'milk and bank statements', key)
	vault.add_item(cred)
	vault.add_item(note)
	assert list(vault.search('BANK')) == [cred]
	assert list(vault.search('example')) == [cred]
	assert list(vault.search('note:')) == [note]
	assert list(vault.search('hunter2')) == []
	assert list(vault.search('milk')) == []

def test_search_is_lazy_and_restartable(vault, key):
	for title in ['apple', 'apricot', 'banana']:
		vault.add_item(new_note(title, 'owner1', 'x', key))
	result = vault.search('ap')
	assert isinstance(result, types.GeneratorType)
	assert [i.title for i in result] == ['apple', 'apricot']
	assert list(result) == []
	vault.add_item(new_note('grape', 'owner1', 'x', key))
	assert [i.title for i in vault.search('ap')] == ['apple', 'apricot', 'grape']

def test_record_has_salt_not_key(vault, key):
	vault.add_item(new_note('T', 'owner1', 'x', key))
	rec = vault.to_record()
	assert set(rec) == {'owner_id', 'salt', 'items'}
	loaded = Vault.from_record(rec)
	assert loaded.salt == vault.salt
	assert [i.id for i in loaded] == [i.id for i in vault]
	assert reveal(next(iter(loaded)), key) == 'x'

def test_legacy_key_field_ignored(vault):
	rec = vault.to_record()
	rec['key'] = 'AAAA'
	loaded = Vault.from_record(rec)
	assert 'key' not in loaded.to_record()

def test_malformed_items_skipped(vault, key):
	good = new_note('good', 'owner1', 'x', key)
	foreign = new_note('foreign', 'intruder', 'x', key)
	rec = vault.to_record()
	rec['items'] = [item_to_record(good), {'kind': 'note'}, item_to_record(foreign), 'junk']
	loaded = Vault.from_record(rec)
	assert [i.title for i in loaded] == ['good']

@pytest.mark.parametrize('rec', [
	{'owner_id': 'o'},
	{'owner_id': 'o', 'salt': '!!'},
	{'owner_id': 3, 'salt': 'AAAAAAAAAAAAAAAAAAAAAA=='},
	{'owner_id': 'o', 'salt': 'AAAA'},
	'junk',
])
def test_malformed_header(rec):
	with pytest.raises(ValueError):
		Vault.from_record(rec)

def test_repository(vault):
	repo = VaultRepository()
	repo.add(vault)
	assert 'owner1' in repo and repo.get('owner1') is vault
	with pytest.raises(ValueError):
		repo.add(Vault('owner1', generate_salt()))
	loaded = VaultRepository.from_record(repo.to_record() + [{'owner_id': 'x'}])
	assert len(loaded) == 1

def test_rotate_items(vault, key):
	new_key = SessionKey(secrets.token_bytes(32))
	cred = new_credential('T', 'owner1', 's', 'u', 'p@ss', key)
	note = new_note('N', 'owner1', 'body', key)
	vault.add_item(cred)
	vault.add_item(note)
	stats = rotate_items(vault, key, new_key)
	assert stats == {'total': 2, 'rotated': 2, 'errors': 0}
	assert reveal(vault.get(cred.id), new_key) == 'p@ss'
	assert reveal(vault.get(note.id), new_key) == 'body'

def test_rotate_counts_undecryptable(vault, key):
	stranger = SessionKey(secrets.token_bytes(32))
	new_key = SessionKey(secrets.token_bytes(32))
	ok = new_note('ok', 'owner1', 'fine', key)
	bad = new_note('bad', 'owner1', 'lost', stranger)
	vault.add_item(ok)
	vault.add_item(bad)
	stats = rotate_items(vault, key, new_key)
	assert stats == {'total': 2, 'rotated': 1, 'errors': 1}
	assert reveal(vault.get(ok.id), new_key) == 'fine'
	assert vault.get(bad.id) == bad
