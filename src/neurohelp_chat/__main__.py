"""Entrypoint: python -m neurohelp_chat"""
from __future__ import annotations

from neurohelp_chat.cli import cli


def main() -> None:
    cli(prog_name="neurohelp-chat")


if __name__ == "__main__":
    main()
