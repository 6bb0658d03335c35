"""Re-encryption of vault items when the session key changes.

Runs as one unit per vault: replacements are computed first and only
committed once every item has been processed. Items that no longer decrypt
under the old key are left as they are and counted as errors.

Never log plaintext or ciphertext values.
"""
import logging
from typing import Optional
from .crypto import CryptoError, VaultCrypto
from .items import reencrypt
from .keys import SessionKey
from .vault import Vault

log = logging.getLogger(__name__)

def rotate_items(vault: Vault, old_key: SessionKey, new_key: SessionKey, crypto: Optional[VaultCrypto] = None) -> dict:
	"""Re-encrypt every item of `vault` from `old_key` to `new_key`.

	Returns:
		Stats dict with keys: total, rotated, errors.
	"""
	stats = {"total": 0, "rotated": 0, "errors": 0}
	replacements = []
	log.info("Starting key rotation for vault owner=%s (%d items)", vault.owner_id, len(vault))

	for item in vault:
		stats["total"] += 1
		try:
			replacements.append(reencrypt(item, old_key, new_key, crypto))
		except CryptoError as err:
			log.error("Error rotating item id=%s: %s", item.id, type(err).__name__)
			stats["errors"] += 1

	for item in replacements:
		vault.replace_item(item)
		stats["rotated"] += 1

	log.info("Key rotation complete: %s", stats)
	return stats
