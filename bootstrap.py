#!/usr/bin/env python3
import sys
import os
import time
from pathlib import Path

ASCII_ART = r"""
   ___ _          _        __    __      _       _
  / __\ |__   __ _(_)_ __  / / /\ \ \__ _| |_ ___| |__   ___ _ __
 / /  | '_ \ / _` | | '_ \ \ \/  \/ / _` | __/ __| '_ \ / _ \ '__|
/ /___| | | | (_| | | | | | \  /\  / (_| | || (__| | | |  __/ |
\____/|_| |_|\__,_|_|_| |_|  \/  \/ \__,_|\__\___|_| |_|\___|_|
"""

ROOT = Path(__file__).resolve().parent


def print_divider():
    print("\n" + "#" * 73 + "\n")

def list_loaded_addons(addons_dir=ROOT / "addons"):
    """Print every detected add-on (cw_* folders with addon.py), return dict of versions."""
    addons_path = Path(addons_dir)
    versions = {}
    if not addons_path.exists():
        print("no addons directory found.")
        return versions
    for addon in sorted(addons_path.iterdir()):
        if addon.is_dir() and addon.name.startswith("cw_") and (addon / "addon.py").exists():
            vfile = addon / "version.txt"
            versions[addon.name] = vfile.read_text().strip() if vfile.exists() else "unknown"
    if versions:
        print("loaded addons: " + ", ".join(f"{n} (v{v})" for n, v in versions.items()))
    else:
        print("no addons found.")
    return versions

def read_core_version():
    version_file = ROOT / "version.txt"
    if version_file.exists():
        return version_file.read_text().strip()
    return "unknown"

def main_menu(inp=input):
    while True:
        print_divider()
        print("select an option:")
        print("")
        print("  1) launch chain watcher")
        print("  2) set api key")
        print("  3) clear api key")
        print("  4) list addons")
        print("  5) exit")
        choice = inp("\nenter your choice: ").strip()
        if choice == "1":
            launch_watcher()
        elif choice == "2":
            set_api_key(inp)
        elif choice == "3":
            clear_api_key(inp)
        elif choice == "4":
            print_divider()
            list_loaded_addons()
        elif choice == "5":
            print("bye! happy chaining.")
            break
        else:
            print("invalid choice. please select a number from the menu.")

def launch_watcher():
    print_divider()
    print("launching chain watcher. type 'help' for commands, 'quit' to stop.\n")
    from cwatch.watcher import main
    main()  # Hands over control to the watcher

def set_api_key(inp=input, validate=None):
    from cwatch.credentials import save_api_key, validate_api_key
    from cwatch.errors import ConfigError
    print_divider()
    key = inp("paste your api key: ").strip()
    validate = validate or validate_api_key
    if key and not validate(key):
        print("[key] the api rejected this key (or could not be reached).")
        if inp("save it anyway? (Y/N): ").strip().lower() != "y":
            return False
    try:
        save_api_key(key)
    except ConfigError as e:
        print(f"[key] {e}")
        return False
    print("[key] api key saved to .env")
    return True

def clear_api_key(inp=input):
    from cwatch.credentials import clear_api_key as _clear
    print_divider()
    if inp("are you sure you want to clear your api key? (Y/N): ").strip().lower() != "y":
        return False
    if _clear():
        print("[key] api key cleared.")
        return True
    print("[key] no api key was stored.")
    return False

if __name__ == "__main__":
    sys.stdout.reconfigure(encoding='utf-8')
    os.system('cls' if os.name == 'nt' else 'clear')
    print(ASCII_ART)
    print_divider()
    print(f"loaded core version: {read_core_version()}")
    list_loaded_addons()
    time.sleep(0.2)
    main_menu()
