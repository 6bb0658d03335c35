import dataclasses, secrets
import pytest
from vaultnotes.lib.crypto import AuthenticationFailure
from vaultnotes.lib.items import (
	NoteItem, EntryError, new_credential, new_note, reveal, replace_secret,
	reencrypt, summary, details, kind_of, item_to_record, item_from_record,
)
from vaultnotes.lib.keys import KeyNotAvailable, SessionKey

@pytest.fixture
def key():
	return SessionKey(secrets.token_bytes(32))

def test_credential_encrypts_secret(key):
	item = new_credential('Example', 'owner1', 'example.com', 'alice', 'p@ss', key)
	assert item.secret != 'p@ss' and 'p@ss' not in item.secret
	assert reveal(item, key) == 'p@ss'
	assert kind_of(item) == 'credential'

def test_note_encrypts_text(key):
	note = new_note('Diary', 'owner1', 'dear diary', key)
	assert 'diary' not in note.text
	assert reveal(note, key) == 'dear diary'
	assert kind_of(note) == 'note'

def test_summary_and_details(key):
	item = new_credential('Example', 'o', 'example.com', 'alice', 'p@ss', key)
	note = new_note('Diary', 'o', 'text', key)
	assert summary(item) == 'Password: Example (example.com)'
	assert summary(note) == 'Note: Diary'
	d = details(item)
	assert 'Site Name: example.com' in d and 'Username: alice' in d
	assert 'p@ss' not in d and item.secret not in d
	assert details(note) == f'Title: Diary\nCreated Date: {note.created}'

def test_empty_title_rejected(key):
	with pytest.raises(EntryError):
		new_credential('', 'o', 's', 'u', 'p', key)
	with pytest.raises(EntryError):
		new_note('   ', 'o', 'text', key)
	with pytest.raises(EntryError):
		new_note('T', '', 'text', key)

def test_items_are_immutable(key):
	item = new_note('T', 'o', 'text', key)
	with pytest.raises(dataclasses.FrozenInstanceError):
		item.title = 'other'

def test_wrong_key_fails(key):
	item = new_note('T', 'o', 'text', key)
	with pytest.raises(AuthenticationFailure):
		reveal(item, SessionKey(secrets.token_bytes(32)))

def test_replace_secret_keeps_identity(key):
	item = new_credential('T', 'o', 's', 'u', 'old', key)
	updated = replace_secret(item, 'new', key)
	assert updated.id == item.id and updated.title == item.title
	assert reveal(updated, key) == 'new'
	assert reveal(item, key) == 'old'

def test_reencrypt(key):
	new_key = SessionKey(secrets.token_bytes(32))
	item = new_note('T', 'o', 'body', key)
	moved = reencrypt(item, key, new_key)
	assert reveal(moved, new_key) == 'body'
	with pytest.raises(AuthenticationFailure):
		reveal(moved, key)

def test_destroyed_key_refuses(key):
	key.destroy()
	with pytest.raises(KeyNotAvailable):
		new_note('T', 'o', 'body', key)

def test_record_round_trip(key):
	item = new_credential('T', 'o', 's', 'u', 'p', key)
	rec = item_to_record(item)
	assert rec['kind'] == 'credential'
	assert item_from_record(rec) == item
	note = new_note('N', 'o', 'x', key)
	assert isinstance(item_from_record(item_to_record(note)), NoteItem)

@pytest.mark.parametrize('mutate', [
	lambda r: r.update(kind='bogus'),
	lambda r: r.pop('secret'),
	lambda r: r.update(extra='x'),
	lambda r: r.update(title=''),
	lambda r: r.update(site=3),
])
def test_record_malformed(key, mutate):
	rec = item_to_record(new_credential('T', 'o', 's', 'u', 'p', key))
	mutate(rec)
	with pytest.raises(EntryError):
		item_from_record(rec)

def test_record_not_mapping():
	with pytest.raises(EntryError):
		item_from_record(['credential'])

def test_ids_are_unique(key):
	ids = {new_note('T', 'o', 'x', key).id for _ in range(20)}
	assert len(ids) == 20
