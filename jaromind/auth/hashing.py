## Password hashing utilities

import bcrypt

def hash_password(password: str) -> str:
    # bcrypt has a 72-byte limit, truncate if necessary
    password_bytes = password.encode('utf-8')[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode('utf-8')

def verify_password(password: str, password_hash: str) -> bool:
    password_bytes = password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, password_hash.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
