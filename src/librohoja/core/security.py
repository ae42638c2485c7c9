"""
Utilidades de seguridad para LibroHoja.

Hasheo y verificación de contraseñas con bcrypt a través de passlib. El coste
de bcrypt se toma de settings.BCRYPT_ROUNDS; los hashes creados con un coste menor
se regeneran la próxima vez que el usuario inicia sesión.

Las cuentas creadas mediante OAuth guardan una contraseña vacía y nunca
verifican con éxito.
"""

from typing import Optional, Tuple

from passlib.context import CryptContext

from librohoja.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__default_rounds=settings.BCRYPT_ROUNDS,
    bcrypt__min_rounds=settings.BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica una contraseña en texto plano contra su versión hasheada.

    Returns:
        bool: False también para un hash vacío.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def verify_and_refresh(plain_password: str, hashed_password: str) -> Tuple[bool, Optional[str]]:
    """
    Verifica la contraseña y, si el hash usa parámetros antiguos, devuelve uno nuevo.

    Returns:
        Tuple[bool, Optional[str]]: (coincide, hash nuevo o None si no hace falta cambiarlo).
    """
    if not hashed_password:
        return False, None
    return pwd_context.verify_and_update(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)
