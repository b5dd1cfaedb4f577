from django.core import checks
from django.db import models

UINT256_MAX = 2**256 - 1
UINT256_DIGITS = len(str(UINT256_MAX))


class Uint256Field(models.CharField):
    """
    Unsigned 256-bit integer (wei, shares, scaled indexes).

    Stored as zero-padded decimal text so values stay exact on every backend
    (SQLite rounds large NUMERIC values) and lexical order equals numeric order.
    Python code only ever sees ``int``.
    """

    description = "Unsigned 256-bit integer"

    def __init__(self, *args, **kwargs):
        kwargs["max_length"] = UINT256_DIGITS
        kwargs.setdefault("default", 0)
        super().__init__(*args, **kwargs)

    def deconstruct(self):
        name, path, args, kwargs = super().deconstruct()
        del kwargs["max_length"]
        return name, path, args, kwargs

    def check(self, **kwargs):
        errors = super().check(**kwargs)
        if self.default not in (None, models.NOT_PROVIDED) and not callable(self.default):
            if not 0 <= int(self.default) <= UINT256_MAX:
                errors.append(
                    checks.Error("default is out of uint256 range.", obj=self, id="tokens.E001")
                )
        return errors

    def from_db_value(self, value, expression, connection):
        if value is None:
            return value
        return int(value)

    def to_python(self, value):
        if value is None or isinstance(value, int):
            return value
        return int(str(value).strip())

    def get_prep_value(self, value):
        value = models.Field.get_prep_value(self, value)
        if value is None:
            return None
        value = self.to_python(value)
        if not 0 <= value <= UINT256_MAX:
            raise ValueError(f"{value} is out of uint256 range")
        return str(value).zfill(UINT256_DIGITS)
