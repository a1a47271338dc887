#!/usr/bin/env python3

from cardarena.main import run


if __name__ == "__main__":
    run()
