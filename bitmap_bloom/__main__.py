"""
Entry point for running the CLI as a module: python -m bitmap_bloom
"""
from bitmap_bloom.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
