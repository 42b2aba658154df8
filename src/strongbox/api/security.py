# API Security - Basic-Auth master password extraction
#
# Callers send the vault master password as the password half of an HTTP
# Basic Authorization header. The username is ignored.
# The password is not checked here: the vault checks it by decrypting.

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

# auto_error=False so a missing header gets the same 401 body as a bad one
basic_auth = HTTPBasic(auto_error=False)


async def get_master_password(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
) -> str:
    """
    FastAPI dependency returning the master password from Basic auth.

    Raises:
        HTTPException: 401 if the Authorization header is missing or not Basic
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Basic Auth credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.password
