from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PresetExtension:
    extension: str
    description: str


# Restored by the fixed-catalog reset; all start out allowed.
DEFAULT_FIXED_EXTENSIONS: list[PresetExtension] = [
    PresetExtension(extension="bat", description="Windows batch file"),
    PresetExtension(extension="cmd", description="Windows command script"),
    PresetExtension(extension="com", description="DOS executable"),
    PresetExtension(extension="cpl", description="Control panel item"),
    PresetExtension(extension="exe", description="Windows executable"),
    PresetExtension(extension="scr", description="Screen saver executable"),
    PresetExtension(extension="js", description="JavaScript file"),
]
