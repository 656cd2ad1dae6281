import os
import logging
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, SecretStr

from ..exceptions import CredentialsError

logger = logging.getLogger(__name__)


class RegistryCredentials(BaseModel):
    """Injected registry credentials; the token never shows up in reprs or logs."""
    model_config = ConfigDict(frozen=True)

    username: str
    token: SecretStr
    server: Optional[str] = None

    @classmethod
    def from_env(cls, username_env: str, token_env: str, server: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> 'RegistryCredentials':
        environ = os.environ if environ is None else environ
        missing = [name for name in (username_env, token_env) if not environ.get(name)]
        if missing:
            raise CredentialsError(f"Missing registry credentials in environment: {', '.join(missing)}")
        logger.debug(f"Loaded registry credentials for user '{environ[username_env]}'.")
        return cls(username=environ[username_env], token=SecretStr(environ[token_env]), server=server)
