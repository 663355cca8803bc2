# dirmirror/version.py
PROGRAM_NAME = "mirror"
__version__ = "0.1.0"

AUTHOR = "Dźmitry Laŭčuk"
AUTHOR_ASCII = "Dzmitry Liauchuk"
COPYRIGHT_YEAR = 2017
