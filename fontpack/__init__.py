"""fontpack – turn a directory of TTF/OTF fonts into a self-hosted web font package."""

__version__ = "2.0.0"
