#!/usr/bin/env python3
from pvmkit.cli import pvm_compile

if __name__ == "__main__":
    pvm_compile._parse_cli_args()
