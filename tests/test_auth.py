import base64
import pytest
from vaultnotes.lib.auth import AuthError, DuplicateUsername, User, UserRepository
from vaultnotes.lib.crypto import FormatError, verify_password

def test_register_and_login():
	repo = UserRepository()
	user = repo.register('alice', 'Secr3t!')
	assert 'alice' in repo and len(repo) == 1
	assert user.password_hash != 'Secr3t!'
	assert verify_password('Secr3t!', user.password_hash)
	assert repo.login('alice', 'Secr3t!')
	assert not repo.login('alice', 'wrong')

def test_login_unknown_user():
	assert UserRepository().login('nobody', 'pw') is False

def test_usernames_are_case_sensitive():
	repo = UserRepository()
	repo.register('alice', 'pw')
	assert not repo.login('Alice', 'pw')
	repo.register('Alice', 'other')
	assert len(repo) == 2

def test_duplicate_username_leaves_existing():
	repo = UserRepository()
	before = repo.register('alice', 'pw1').password_hash
	with pytest.raises(DuplicateUsername):
		repo.register('alice', 'pw2')
	assert repo.get('alice').password_hash == before
	assert repo.login('alice', 'pw1')

def test_empty_fields_rejected():
	repo = UserRepository()
	with pytest.raises(AuthError):
		repo.register('', 'pw')
	with pytest.raises(AuthError):
		repo.register('bob', '')
	assert len(repo) == 0

def test_build_does_not_insert():
	repo = UserRepository()
	user = repo.build('carol', 'pw')
	assert 'carol' not in repo
	repo.add(user)
	assert repo.get_by_id(user.id) is user

def test_reset_password_wrong_current():
	repo = UserRepository()
	user = repo.register('alice', 'pw')
	before = user.password_hash
	assert user.reset_password('nope', 'new') is False
	assert user.reset_password('nope', '') is False
	assert user.password_hash == before

def test_reset_password():
	user = UserRepository().register('alice', 'pw')
	assert user.reset_password('pw', 'new')
	assert user.check_password('new')
	assert not user.check_password('pw')
	with pytest.raises(AuthError):
		user.reset_password('new', '')

def test_corrupt_stored_hash():
	repo = UserRepository()
	repo.add(User('eve', base64.b64encode(b'short').decode()))
	with pytest.raises(FormatError):
		repo.login('eve', 'pw')

def test_repr_hides_hash():
	user = UserRepository().register('alice', 'pw')
	assert user.password_hash not in repr(user)

def test_record_round_trip_skips_malformed():
	repo = UserRepository()
	alice = repo.register('alice', 'pw')
	records = repo.to_record() + [{'username': 'broken'}, {'id': 'x', 'username': '', 'password_hash': 'h'}, 'junk']
	loaded = UserRepository.from_record(records)
	assert len(loaded) == 1
	assert loaded.get('alice').id == alice.id
	assert loaded.login('alice', 'pw')
