import logging
import threading
from pathlib import Path

import google.auth
import google.auth.exceptions
from google.auth import impersonated_credentials
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
import google_auth_httplib2
import httplib2

from .errors import ConfigError

logger = logging.getLogger(__name__)

MODES = ("dwd", "user", "adc")

class ThreadLocalHttp():
    """
    httplib2 is not thread safe, so hand every thread its own authorized
    connection sharing the same credentials.  This is what gets injected
    into the service registry.
    """
    def __init__(self, credentials, timeout: float|None = None) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self._local = threading.local()

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{type(self.credentials).__name__}"

    @property
    def http(self) -> google_auth_httplib2.AuthorizedHttp:
        if not hasattr(self._local, 'http'):
            self._local.http = google_auth_httplib2.AuthorizedHttp(
                self.credentials, http=httplib2.Http(timeout=self.timeout))
        return self._local.http

    def request(self, *args, **kwargs):
        return self.http.request(*args, **kwargs)

def dwd_credentials(credentials_file: Path|str, subject: str, scopes: list[str]):
    """
    Service account with domain wide delegation, impersonating subject.
    """
    creds = service_account.Credentials.from_service_account_file(str(credentials_file), scopes=scopes)
    return creds.with_subject(subject)

def adc_credentials(subject: str, scopes: list[str], service_account_email: str = ""):
    """
    Application default credentials.  When a service account is named the
    default credentials are used to impersonate it.
    Note that impersonated credentials can't do domain wide delegation on their
    own, the subject is only honored for service account keys.
    """
    creds, _ = google.auth.default(scopes=scopes)
    if service_account_email:
        creds = impersonated_credentials.Credentials(source_credentials=creds,
                                                     target_principal=service_account_email,
                                                     target_scopes=scopes)
    elif subject and hasattr(creds, "with_subject"):
        creds = creds.with_subject(subject)
    return creds

def user_credentials(token_file: Path|str, scopes: list[str]):
    """
    Load a previously authorized user token.
    There is no consent flow here, the token has to exist already.
    """
    tf = Path(token_file)
    if not (tf.exists() and tf.is_file()):
        raise ConfigError(f"user token {tf} not found")
    return Credentials.from_authorized_user_file(str(tf), scopes)

def transport_from_config(config, timeout: float|None = None) -> ThreadLocalHttp:
    """
    Build the transport for a gwsm.config.GSMConfig.
    dwd: service account key file + subject
    user: cached authorized user token, credentialsFile or <cfg_dir>/<name>_token.json
    adc: application default credentials (optionally impersonating serviceAccount)
    """
    mode = config.mode
    scopes = list(config.scopes or [])
    if mode == "dwd":
        creds = dwd_credentials(config.credentialsFile, config.subject, scopes)
    elif mode == "user":
        creds = user_credentials(config.token_path(), scopes)
    elif mode == "adc":
        try:
            creds = adc_credentials(config.subject, scopes, config.serviceAccount)
        except google.auth.exceptions.DefaultCredentialsError as e:
            raise ConfigError(f"no application default credentials: {e}") from e
    else:
        raise ConfigError(f"{mode} is not a valid mode")
    logger.debug("using %s credentials for %s", mode, config.name)
    return ThreadLocalHttp(creds, timeout)
