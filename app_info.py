"""Program identity: version, splash art and links."""

from __future__ import annotations

from console_io import ConsoleIO

APP_NAME = "TR2 Version Swapper"
APP_VERSION = "2.0.0"

REPO_LINK = "https://github.com/TombRunners/tr2-version-swapper/"
LATEST_RELEASE_LINK = "https://github.com/TombRunners/tr2-version-swapper/releases/latest"

ASCII_ART = (
    r"    _______ _____  ___                     ",
    r"   |__   __|  __ \|__ \                    ",
    r"      | |  | |__) |  ) |                   ",
    r"      | |  |  _  /  / /                    ",
    r"      | |  | | \ \ / /_                    ",
    r"__    |_|_ |_|  \_\____|                   ",
    r"\ \    / /          (_)                    ",
    r" \ \  / /__ _ __ ___ _  ___  _ __          ",
    r"  \ \/ / _ \ '__/ __| |/ _ \| '_ \         ",
    r"   \  /  __/ |  \__ \ | (_) | | | |        ",
    r"  __\/_\___|_|  |___/_|\___/|_| |_|        ",
    r" / ____|                                   ",
    r"| (_____      ____ _ _ __  _ __   ___ _ __ ",
    r" \___ \ \ /\ / / _` | '_ \| '_ \ / _ \ '__|",
    r" ____) \ V  V / (_| | |_) | |_) |  __/ |   ",
    r"|_____/ \_/\_/ \__,_| .__/| .__/ \___|_|   ",
    r"                    | |   | |              ",
    r"                    |_|   |_|              ",
)

SPLASH_STYLE = "dark_cyan"


def print_splash(io: ConsoleIO):
    for line in ASCII_ART:
        io.centered(line, SPLASH_STYLE)
    io.centered("Made with love by Midge", SPLASH_STYLE)
    io.centered(f"Source code: {REPO_LINK}")
    io.print()
