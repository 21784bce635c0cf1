"""
CLI commands for layerconf.
"""

from layerconf.cli.main import (
    build_configuration,
    build_parser,
    get_command,
    main,
    section_command,
    show_command,
)

__all__ = [
    "build_configuration",
    "build_parser",
    "get_command",
    "main",
    "section_command",
    "show_command",
]
