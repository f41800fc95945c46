def parse_tags(raw: str) -> list[str]:
    if not raw:
        return []
    tokens = [t.strip().lower() for t in raw.replace(";", ",").split(",")]
    return sorted({t for t in tokens if t})


def parse_optional_id(raw) -> int | None:
    if raw is None:
        return None

    if isinstance(raw, bool):
        raise ValueError("invalid id")

    if isinstance(raw, int):
        if raw <= 0:
            raise ValueError("invalid id")
        return raw

    value = str(raw).strip()
    if not value or value.lower() == "null":
        return None

    parsed = int(value)
    if parsed <= 0:
        raise ValueError("invalid id")
    return parsed
