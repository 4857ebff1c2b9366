"""Entry point: python -m threadkeeper [command]"""

from threadkeeper.cli import main

if __name__ == "__main__":
    main()
