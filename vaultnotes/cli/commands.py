"""CLI commands implemented with click.

Every command that touches a vault logs in first with --username/--password
and operates on the file store under VAULT_PATH.
"""
from __future__ import annotations
import click
from vaultnotes.lib.auth import AuthError
from vaultnotes.lib.crypto import generate_strong_password
from vaultnotes.lib.items import EntryError, details, summary
from vaultnotes.lib.service import VaultService
from vaultnotes.lib.storage import FileBlobStore, StorageError

def _service() -> VaultService:
	return VaultService(FileBlobStore())

def _open(username: str, password: str) -> VaultService | None:
	svc = _service()
	if not svc.login(username, password):
		click.echo('Invalid username or password.')
		return None
	return svc

def _short(item_id: str) -> str:
	return item_id[:8]

def _find(svc: VaultService, item_id: str):
	"""Resolve a full id or a unique prefix of one."""
	matches = [i for i in svc.list_items() if i.id.startswith(item_id)]
	return matches[0] if len(matches) == 1 else None

@click.group()
def cli():
	"""vaultnotes: local encrypted password and note vault"""

@cli.command()
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def register(username, password):
	"""Create a user and an empty vault."""
	try:
		_service().register(username, password)
		click.echo('Registration successful! Please login.')
	except (AuthError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command('add-password')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
@click.option('--title', prompt=True)
@click.option('--site', prompt=True)
@click.option('--login', 'login_name', prompt='Site username')
@click.option('--secret', default=None, help='Site password (prompted if omitted).')
@click.option('--generate', is_flag=True, help='Generate a strong site password.')
def add_password(username, password, title, site, login_name, secret, generate):
	"""Add a password entry."""
	svc = _open(username, password)
	if svc is None: return
	if generate:
		secret = svc.generate_password()
	elif secret is None:
		secret = click.prompt('Site password', hide_input=True)
	try:
		item = svc.add_credential(title, site, login_name, secret)
		click.echo(f'Added entry {_short(item.id)}.')
		if generate:
			click.echo(f'Generated password: {secret}')
	except (EntryError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command('add-note')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
@click.option('--title', prompt=True)
@click.option('--content', prompt=True)
def add_note(username, password, title, content):
	svc = _open(username, password)
	if svc is None: return
	try:
		item = svc.add_note(title, content)
		click.echo(f'Added note {_short(item.id)}.')
	except (EntryError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command('list')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
def list_entries(username, password):
	svc = _open(username, password)
	if svc is None: return
	for item in svc.list_items():
		click.echo(f'{_short(item.id)}: {summary(item)}')

@cli.command()
@click.argument('keyword')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
def search(keyword, username, password):
	"""Search titles and summaries (never decrypted content)."""
	svc = _open(username, password)
	if svc is None: return
	found = False
	for item in svc.search(keyword):
		found = True
		click.echo(f'{_short(item.id)}: {summary(item)}')
	if not found:
		click.echo('No matches')

@cli.command('show')
@click.argument('item_id')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
def show_entry(item_id, username, password):
	"""Show an entry including its decrypted password or note text."""
	svc = _open(username, password)
	if svc is None: return
	item = _find(svc, item_id)
	if item is None:
		click.echo('Not found')
		return
	content = svc.reveal(item.id)
	if content is None:
		click.echo('Error: Failed to decrypt content.')
		return
	click.echo(f'{details(item)}\n---\n{content}')

@cli.command('delete')
@click.argument('item_id')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
def delete_entry(item_id, username, password):
	svc = _open(username, password)
	if svc is None: return
	item = _find(svc, item_id)
	try:
		if item is not None and svc.delete_item(item.id):
			click.echo('Entry deleted.')
		else:
			click.echo('Not found')
	except StorageError as e:
		click.echo(f'Error: {e}')

@cli.command('reset-password')
@click.option('--username', prompt=True)
@click.option('--password', prompt='Current password', hide_input=True)
@click.option('--new-password', prompt=True, hide_input=True, confirmation_prompt=True)
def reset_password(username, password, new_password):
	"""Change the master password; entries are re-encrypted."""
	svc = _open(username, password)
	if svc is None: return
	try:
		if svc.reset_password(password, new_password):
			click.echo('Password reset successfully!')
		else:
			click.echo('Incorrect current password.')
	except (AuthError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command()
def generate():
	"""Print a strong random password."""
	click.echo(generate_strong_password())
