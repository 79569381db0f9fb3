"""Status lines for the NexusHub CLI.

Lines go to stderr so stdout stays machine-readable. Emoji glyphs fall back
to ASCII when stderr cannot encode them.
"""

import click

GLYPHS = {
    "warn": ("⚠️", "[!]"),
    "success": ("✅", "[OK]"),
    "error": ("❌", "[X]"),
}


def _glyph(kind: str) -> str:
    emoji, fallback = GLYPHS[kind]
    encoding = getattr(click.get_text_stream("stderr"), "encoding", None) or "ascii"
    try:
        emoji.encode(encoding)
    except UnicodeEncodeError:
        return fallback
    return emoji


def warn(msg: str) -> None:
    click.secho(f"{_glyph('warn')}  {msg}", fg="yellow", bold=True, err=True)


def success(msg: str) -> None:
    click.secho(f"{_glyph('success')}  {msg}", fg="green", bold=True, err=True)


def error(msg: str) -> None:
    click.secho(f"{_glyph('error')}  {msg}", fg="red", bold=True, err=True)
