import click


class Namespace(click.ParamType):
    """A Celestia namespace id: 10 bytes as hex, with or without a 0x prefix."""

    name = "namespace"

    def convert(self, value, param, ctx):
        raw = value[2:] if value.startswith("0x") else value
        try:
            bytes.fromhex(raw)
        except ValueError:
            self.fail(f"{value} is not a hex string", param, ctx)
        if len(raw) != 20:
            self.fail(f"{value} must be exactly 10 bytes (20 hex characters)", param, ctx)
        return raw.lower()
