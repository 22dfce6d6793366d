DEFAULT_REPO = "wheelybird/ldap-totp-schema"
DEFAULT_BRANCH = "main"
GITHUB_API_URL = "https://api.github.com"
GITHUB_URL = "https://github.com"
DEFAULT_OUTPUT_DIR = "./ldap-totp-schema-configured"
DEFAULT_PASSWORD_LENGTH = 32
DEFAULT_PASSWORD_HASHERS = ["slappasswd"]
REQUEST_TIMEOUT = 30  # in seconds

# Placeholders shipped in the upstream templates
DEFAULT_BASE_DN = "dc=example,dc=com"
PASSWORD_PLACEHOLDER = "{SSHA}YourHashedPasswordHere"

SCHEMA_FILE = "totp-schema.ldif"
ACLS_FILE = "totp-acls.ldif"
SERVICE_ACCOUNT_FILE = "service-account.ldif"
PASSWORD_FILE = "service-account-password.txt"

SERVICE_ACCOUNT_RDN = "cn=nslcd,ou=services"
PASSWORD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

CLI_NAME = "ldap-totp-setup"
