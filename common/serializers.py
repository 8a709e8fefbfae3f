"""Serializer helpers shared across apps."""


class AliasedFieldsMixin:
    """Accept the storefront's camelCase keys alongside snake_case ones.

    ``aliases`` maps an incoming key to the serializer field it fills. The
    field's own name wins when both are sent.
    """

    aliases: dict[str, str] = {}

    def to_internal_value(self, data):
        if hasattr(data, "get"):
            data = {key: data.get(key) for key in data.keys()}
            for alias, name in self.aliases.items():
                if alias in data and name not in data:
                    data[name] = data.pop(alias)
        return super().to_internal_value(data)
