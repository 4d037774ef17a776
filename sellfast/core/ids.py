import uuid

# one prefix per table, so an id in a log line says what it points at
ID_PREFIXES = frozenset({"cat", "cmp", "icm", "itm", "spc", "usr", "ses", "lst", "lsp", "idm"})


def gen_id(prefix: str) -> str:
    if prefix not in ID_PREFIXES:
        raise ValueError(f"unknown id prefix {prefix!r}")
    return f"{prefix}_{uuid.uuid4().hex}"
