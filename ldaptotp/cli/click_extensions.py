import click

from ldaptotp.basedn.basedn import validate_base_dn


class BaseDnParamType(click.ParamType):
    """
    A base DN such as dc=example,dc=com.

    Only dc, o, ou and c components with [a-zA-Z0-9._-] values are accepted.
    """

    name = "base_dn"

    def convert(self, value, param, ctx):
        if value is None or value == "":
            return None
        if not validate_base_dn(value):
            self.fail(
                f"Invalid base DN format: {value}. "
                "Please use format like 'dc=example,dc=com'",
                param,
                ctx,
            )
        return value


BASE_DN = BaseDnParamType()
