import os


def manifest_root_path():
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")


def resolve_manifest_path(raw: str) -> str:
    # bare names are looked up under the demo data folder
    if os.path.exists(raw) or os.path.isabs(raw):
        return raw
    return os.path.join(manifest_root_path(), raw)


def try_to_int(value: str):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
