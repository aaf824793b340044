"""GSM base station scanning and clock offset measurement from 8-bit I/Q samples."""

__version__ = "0.4.1"