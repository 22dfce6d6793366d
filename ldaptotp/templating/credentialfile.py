import datetime
import logging
import os

logger = logging.getLogger(__name__)

PASSWORD_FILE_MODE = 0o600

PASSWORD_FILE_TEMPLATE = """\
# Service account password for LDAP TOTP authentication
# Generated: {generated_at}
#
# Account DN: {account_dn}
#
# IMPORTANT: Keep this file secure and delete after configuring your services.

Password: {password}
"""


def render_password_file(
    password: str, account_dn: str, generated_at: datetime.datetime | None = None
) -> str:
    if generated_at is None:
        generated_at = datetime.datetime.now(datetime.timezone.utc)
    return PASSWORD_FILE_TEMPLATE.format(
        generated_at=generated_at.astimezone(datetime.timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S UTC"
        ),
        account_dn=account_dn,
        password=password,
    )


def write_password_file(
    path: str,
    password: str,
    account_dn: str,
    generated_at: datetime.datetime | None = None,
):
    """
    Write the plaintext service account password, readable by the owner only.

    Any previous file is removed first and the new one is created with mode
    600, so it never exists with wider permissions.
    """
    if os.path.lexists(path):
        os.remove(path)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, PASSWORD_FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        # the umask can only narrow the mode, make it exact
        os.fchmod(f.fileno(), PASSWORD_FILE_MODE)
        f.write(render_password_file(password, account_dn, generated_at))
    logger.debug("Password file written", extra={"path": path})
