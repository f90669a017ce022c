"""클라이언트 ``encryptedData`` 페이로드 암복호화 헬퍼입니다.

웹 클라이언트는 JSON 본문을 패스프레이즈 기반 AES(OpenSSL ``Salted__`` 형식, AES-256-CBC,
MD5 키 유도) 문자열로 보냅니다. 이 모듈은 같은 형식을 해석하고 만들어 냅니다.
"""

import base64
import json
import os
from typing import Any, Tuple

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

SALT_HEADER = b"Salted__"
KEY_SIZE = 32
IV_SIZE = 16


def _derive_key_iv(passphrase: bytes, salt: bytes) -> Tuple[bytes, bytes]:
    derived, block = b"", b""
    while len(derived) < KEY_SIZE + IV_SIZE:
        digest = hashes.Hash(hashes.MD5())
        digest.update(block + passphrase + salt)
        block = digest.finalize()
        derived += block
    return derived[:KEY_SIZE], derived[KEY_SIZE:KEY_SIZE + IV_SIZE]


def encrypt_payload(data: Any, passphrase: str) -> str:
    salt = os.urandom(8)
    key, iv = _derive_key_iv(passphrase.encode(), salt)
    padder = padding.PKCS7(128).padder()
    plain = padder.update(json.dumps(data).encode()) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    cipher_text = encryptor.update(plain) + encryptor.finalize()
    return base64.b64encode(SALT_HEADER + salt + cipher_text).decode()


def decrypt_payload(token: str, passphrase: str) -> Any:
    """암호문을 JSON 값으로 복원한다. 형식이나 키가 맞지 않으면 ValueError."""
    try:
        raw = base64.b64decode(token, validate=True)
    except (ValueError, TypeError) as exc:
        raise ValueError("Encrypted payload is not valid base64") from exc
    if not raw.startswith(SALT_HEADER) or len(raw) <= 16 or (len(raw) - 16) % 16:
        raise ValueError("Encrypted payload has an unexpected format")

    key, iv = _derive_key_iv(passphrase.encode(), raw[8:16])
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    plain = decryptor.update(raw[16:]) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    try:
        text = (unpadder.update(plain) + unpadder.finalize()).decode("utf-8")
        return json.loads(text)
    except ValueError as exc:
        raise ValueError("Encrypted payload could not be decrypted") from exc
