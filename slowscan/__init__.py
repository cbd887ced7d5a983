"""slowscan - SSTV image decoding and encoding over audio tones."""

__version__ = '0.1.0'
