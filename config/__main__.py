"""Command line interface for checking configuration loading"""
from pathlib import Path

from . import settings_conf, DEFAULTS

def main():
    """Display loaded configuration and write an example settings file"""
    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings_conf.items():
        print(f"{key}: {value}")

    example_path = Path("settings.conf.example")
    with open(example_path, "w") as f:
        f.write("[DEFAULT]\n")
        for key, value in DEFAULTS.items():
            f.write(f"{key} = {value}\n")
    print(f"\nWrote {example_path}")

if __name__ == "__main__":
    main()
