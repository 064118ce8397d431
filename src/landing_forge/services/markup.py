"""Placeholder rewriting for generated landing markup.

Every pattern captures the whole key token and resolves it through a lookup,
so a key that is a prefix of another key ("wheel" and "wheelFrame") can never
replace part of the longer reference.
"""

import re

_KEY = r"[A-Za-z0-9_-]+"

_ASSET_FILE = re.compile(rf"assets/(?P<key>{_KEY})\.(?:png|webp|jpe?g)\b")
_ASSET_TOKEN = re.compile(
    rf"\{{\{{\s*(?:asset:)?(?P<key>{_KEY})\s*\}}\}}|\$\{{assets\.(?P<dotted>{_KEY})\}}"
)
_SOUND_AUDIO = re.compile(
    rf"new Audio\((?P<quote>['\"])(?:assets/sounds/|sounds/|\./)?"
    rf"(?P<key>{_KEY})\.mp3(?P=quote)\)"
)
_SOUND_TOKEN = re.compile(rf"\{{\{{\s*sound:(?P<key>{_KEY})\s*\}}\}}")
_SOUNDS_BLOCK = re.compile(r"sounds:\s*\{[^}]*\}")


def _lookup(paths: dict[str, str], key: str) -> str | None:
    if key in paths:
        return paths[key]
    lowered = key.lower()
    for candidate, path in paths.items():
        if candidate.lower() == lowered:
            return path
    return None


def rewrite_asset_references(markup: str, asset_paths: dict[str, str]) -> str:
    """Point every asset placeholder at its packaged relative path."""
    if not asset_paths:
        return markup

    def replace_file(match: re.Match[str]) -> str:
        path = _lookup(asset_paths, match.group("key"))
        return path if path is not None else match.group(0)

    def replace_token(match: re.Match[str]) -> str:
        key = match.group("key") or match.group("dotted")
        path = _lookup(asset_paths, key)
        return path if path is not None else match.group(0)

    rewritten = _ASSET_FILE.sub(replace_file, markup)
    return _ASSET_TOKEN.sub(replace_token, rewritten)


def rewrite_sound_references(markup: str, sound_paths: dict[str, str]) -> str:
    """Point every sound reference at its packaged relative path."""
    if not sound_paths:
        return markup

    rewritten = markup
    if "CONFIG" in rewritten:
        entries = ",\n    ".join(
            f"{key}: '{path}'" for key, path in sound_paths.items()
        )
        rewritten = _SOUNDS_BLOCK.sub(
            lambda _match: f"sounds: {{\n    {entries}\n  }}", rewritten, count=1
        )

    def replace_audio(match: re.Match[str]) -> str:
        path = sound_paths.get(match.group("key"))
        return f"new Audio('{path}')" if path is not None else match.group(0)

    def replace_token(match: re.Match[str]) -> str:
        path = sound_paths.get(match.group("key"))
        return path if path is not None else match.group(0)

    rewritten = _SOUND_AUDIO.sub(replace_audio, rewritten)
    return _SOUND_TOKEN.sub(replace_token, rewritten)
