"""EMV smart card data: BER tag/lengths, DOLs, CA keys, certificate recovery and signing, an emulated card."""

__version__ = "0.1.0"